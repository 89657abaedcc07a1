"""Redis key layout for the two entity families of the index.

``URLSet:<term>`` holds the set of URLs containing a term and
``TermCounter:<url>`` holds the term -> count hash for one page. Terms and
URLs are embedded verbatim, so a term containing ``:`` still round-trips
through :func:`term_from_url_set_key`.
"""

from __future__ import annotations

URL_SET_PREFIX = "URLSet:"
TERM_COUNTER_PREFIX = "TermCounter:"


def url_set_key(term: str) -> str:
    return URL_SET_PREFIX + term


def term_counter_key(url: str) -> str:
    return TERM_COUNTER_PREFIX + url


def term_from_url_set_key(key: str) -> str:
    """Return the term embedded in a URLSet key."""
    if not key.startswith(URL_SET_PREFIX):
        raise ValueError(f"Not a URLSet key: {key!r}")
    return key[len(URL_SET_PREFIX) :]


def url_from_term_counter_key(key: str) -> str:
    """Return the URL embedded in a TermCounter key."""
    if not key.startswith(TERM_COUNTER_PREFIX):
        raise ValueError(f"Not a TermCounter key: {key!r}")
    return key[len(TERM_COUNTER_PREFIX) :]
