import logging
from collections.abc import Iterable
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

WILDCARD_PREFIX = "*."


def normalize_domains(allowed_domains: Iterable[str]) -> list[str]:
    return [d.strip().lower() for d in allowed_domains if d and d.strip()]


def is_allowed(source_url: str, allowed_domains: Iterable[str]) -> bool:
    """
    Check the source URL's host against the allow-list.

    Entries are exact hosts or ``*.example.com`` wildcards, which match the
    base domain and any subdomain. An empty list allows every host.
    Unparseable URLs are rejected.
    """
    try:
        hostname = urlsplit(source_url).hostname
    except ValueError:
        logger.debug(f"Rejecting unparseable source url: {source_url[:80]}")
        return False
    if not hostname:
        return False
    hostname = hostname.lower()

    domains = normalize_domains(allowed_domains)
    if not domains:
        return True

    for domain in domains:
        if domain.startswith(WILDCARD_PREFIX):
            base = domain[len(WILDCARD_PREFIX):]
            if hostname == base or hostname.endswith("." + base):
                return True
        elif hostname == domain:
            return True
    return False
