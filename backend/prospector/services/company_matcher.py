"""
Company match validation.

Two checks guard against Apollo attaching the wrong company to a candidate:
- validate_company_match: permissive fuzzy name comparison
- domain_echo_matches: the organization reports the domain we asked about
"""

import re
from typing import Optional

# Corporate suffix words / TLDs removed wherever they appear before comparing "core" names
_SUFFIX_RE = re.compile(r"\s+(?:inc|llc|ltd|corporation|corp|co)\b|\.(?:io|com|ai)\b")
_SEPARATOR_RE = re.compile(r"[\s,.]*\s+")
_TRAILING_PUNCT_RE = re.compile(r"[\s,.]+$")
_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


def core_company_name(name: str) -> str:
    """
    Lowercased name with corporate suffix words stripped.

    "Acme, Inc." -> "acme", "Acme.io" -> "acme", "Acme Inc Labs" -> "acme labs"
    """
    core = _SUFFIX_RE.sub("", name.lower().strip())
    core = _SEPARATOR_RE.sub(" ", core)
    return _TRAILING_PUNCT_RE.sub("", core).strip()


def validate_company_match(searched_name: str, returned_name: Optional[str]) -> bool:
    """
    Does the organization Apollo returned plausibly match the company we searched?

    Accepts "Haddock" vs "Haddock Inc" or "haddock.io", rejects "Haddock" vs "Google".
    Favors false positives; the domain-echo check is the strict gate.
    """
    if not returned_name or not returned_name.strip() or not searched_name:
        return False

    searched = searched_name.lower().strip()
    returned = returned_name.lower().strip()
    if not searched:
        return False

    # Exact match
    if searched == returned:
        return True

    # One contains the other
    if searched in returned or returned in searched:
        return True

    searched_core = core_company_name(searched)
    returned_core = core_company_name(returned)
    if not searched_core or not returned_core:
        return False

    if searched_core == returned_core:
        return True

    return searched_core in returned_core or returned_core in searched_core


def domain_from_url(url: Optional[str]) -> Optional[str]:
    """'https://www.acme.com/about' -> 'www.acme.com'"""
    if not url or not url.strip():
        return None
    host = _SCHEME_RE.sub("", url.strip())
    host = host.split("/", 1)[0].strip().lower()
    return host or None


def reported_domain(primary_domain: Optional[str], website_url: Optional[str]) -> Optional[str]:
    """The domain an organization reports for itself: primary domain, else website host."""
    return domain_from_url(primary_domain) or domain_from_url(website_url)


def domain_echo_matches(reported: Optional[str], queried: str) -> bool:
    """
    True when the reported domain equals the queried one or one is a suffix of
    the other ("www.acme.io" / "acme.io"). An unreported domain never matches.
    """
    if not reported or not queried:
        return False
    reported = reported.lower().strip()
    queried = queried.lower().strip()
    return reported == queried or reported.endswith(queried) or queried.endswith(reported)
