from __future__ import annotations

import re
from typing import Optional
from urllib.parse import parse_qs, urljoin, urlparse

import tldextract


_SCHEME_WWW = re.compile(r"^(https?://)?(www\.)?", re.IGNORECASE)

# Offline extractor: rely on the bundled public suffix snapshot, no HTTP fetch
_EXTRACT = tldextract.TLDExtract(suffix_list_urls=())


def normalize_website(url: Optional[str]) -> str:
    """Reduce a website to its origin with a trailing slash ("acme.fr/x" -> "https://acme.fr/").

    Returns "" when no usable host can be found.
    """
    if not url:
        return ""
    text = str(url).strip()
    if not text:
        return ""
    if "://" not in text:
        text = f"https://{text}"
    u = urlparse(text)
    if not u.netloc:
        return ""
    return f"{u.scheme.lower()}://{u.netloc.lower()}/"


def extract_domain(url: Optional[str]) -> Optional[str]:
    """Bare host of a website: scheme and leading "www." stripped, cut at the first "/"."""
    if not url:
        return None
    host = _SCHEME_WWW.sub("", str(url).strip()).split("/")[0]
    return host or None


def is_platform_link(url: Optional[str], platform_domain: str) -> bool:
    """True when `url` points at `platform_domain` or one of its subdomains (fr.linkedin.com)."""
    if not url:
        return False
    try:
        host = urlparse(url).netloc
    except ValueError:
        return False
    if not host:
        return False
    ext = _EXTRACT(host)
    if not ext.domain or not ext.suffix:
        return False
    return f"{ext.domain}.{ext.suffix}".lower() == platform_domain.lower()


def unwrap_redirect(url: Optional[str], base: str = "https://duckduckgo.com") -> Optional[str]:
    """Recover the destination of a search-engine redirect link (`/l/?uddg=<target>`).

    Unwrapped absolute links are returned unchanged; anything else gives None.
    """
    if not url:
        return None
    try:
        full = urlparse(urljoin(base, url))
    except ValueError:
        return None
    target = parse_qs(full.query).get("uddg")
    if target and target[0]:
        return target[0]
    if url.startswith("http://") or url.startswith("https://"):
        return url
    return None
