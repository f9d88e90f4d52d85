from __future__ import annotations

import re
from urllib.parse import urlparse

BLOCKED_DOMAINS = (
    "tiktok.com",
    "pinterest.com",
    "facebook.com",
    "twitter.com",
    "instagram.com",
    "youtube.com",
    "reddit.com",
)

PAYWALL_DOMAINS = (
    "nytimes.com",
    "wsj.com",
    "ft.com",
)

BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "DNT": "1",
    "Upgrade-Insecure-Requests": "1",
}


def is_valid_url(url: str) -> bool:
    """Basic URL validation."""
    try:
        result = urlparse(url)
        return all([result.scheme in ("http", "https"), result.netloc])
    except Exception:
        return False


def extract_domain(url: str) -> str:
    """Hostname without a leading ``www.``."""
    try:
        host = (urlparse(url).hostname or "").lower()
    except ValueError:
        return url
    return host[4:] if host.startswith("www.") else host


def _host_matches(host: str, domains: tuple[str, ...]) -> bool:
    host = host.lower().strip().rstrip(".")
    return any(host == domain or host.endswith("." + domain) for domain in domains)


def _hosts(link: str, display_link: str) -> list[str]:
    hosts = [extract_domain(link)]
    if display_link:
        # displayLink is a bare host ("www.bbc.com"), not a URL
        hosts.append(extract_domain(f"https://{display_link.strip()}"))
    return [h for h in hosts if h]


def is_blocked(link: str, display_link: str = "") -> bool:
    """Social and video platforms never make it into the digest."""
    return any(_host_matches(host, BLOCKED_DOMAINS) for host in _hosts(link, display_link))


def is_paywalled(link: str, display_link: str = "") -> bool:
    return any(_host_matches(host, PAYWALL_DOMAINS) for host in _hosts(link, display_link))


def looks_like_html(body: str) -> bool:
    head = body.lstrip()[:15].lower()
    return head.startswith("<!doctype") or head.startswith("<html")


def fallback_title(url: str) -> str:
    """Readable title built from the domain, e.g. ``bbc.co.uk`` -> ``Bbc``."""
    domain = extract_domain(url)
    if not domain:
        return url
    label = re.split(r"[.\-]", domain)[0]
    return label.capitalize() if label else domain
