"""Inverted index over crawled pages, persisted in a key-value store.

Two coupled projections are maintained:

* ``URLSet:<term>``: set of page URLs containing the term.
* ``TermCounter:<url>``: hash of term -> occurrence count for the page.

A URL is in ``URLSet(t)`` exactly when ``t`` has a positive count in
``TermCounter(url)``, with one known exception: re-indexing a page does not
remove it from the URLSets of terms it no longer contains. Every read goes to
the store; the index keeps no local copy.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator, Mapping, Optional, Set, Tuple, Union

from termindex.exceptions import TermNotFound
from termindex.parsers.html_parser import HTMLPageParser
from termindex.storage.base_store import KeyValueStore
from termindex.storage.keys import (
    TERM_COUNTER_PREFIX,
    URL_SET_PREFIX,
    term_counter_key,
    term_from_url_set_key,
    url_set_key,
)
from termindex.storage.models import (
    TermCounter,
    URLSet,
    decode_count,
    decode_term_counter,
    encode_counts,
    url_set_from_members,
    validate_counts,
)
from termindex.terms import count_terms

logger = logging.getLogger(__name__)

TermCounts = Union[TermCounter, Mapping[str, int]]


class Index:
    """Store-backed web search index.

    Parameters
    ----------
    store: KeyValueStore
        The backend; its connection is owned by the caller.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    # ----- Writes -----

    def index_page(self, url: str, term_counts: TermCounts) -> None:
        """Add a page to the index, replacing any previous counts for it.

        The old ``TermCounter(url)`` is deleted and every term with a positive
        count is written to both projections in a single transaction. Terms
        with a zero count are skipped.

        Raises
        ------
        ValueError
            A count is negative or not an integer; nothing is written.
        MalformedRecord
            A URLSet key holds a foreign value; nothing is written.
        StoreUnavailable
            The transaction did not commit; the index is unchanged.
        """
        if not isinstance(term_counts, TermCounter):
            term_counts = TermCounter.from_mapping(url, term_counts)
        validate_counts(term_counts.counts)
        stored = encode_counts(term_counts.positive_counts())
        tc_key = term_counter_key(url)

        with self.store.transaction() as trans:
            trans.delete(tc_key)
            for term, value in stored.items():
                trans.set_add(url_set_key(term), url)
                trans.hash_set(tc_key, term, value)
        logger.debug("Indexed %s with %d terms", url, len(stored))

    def index_html(self, url: str, html: str, *, content_id: Optional[str] = None) -> TermCounter:
        """Extract paragraph terms from ``html`` and index them under ``url``."""
        page = HTMLPageParser(content_id=content_id).parse(url, html)
        counter = count_terms(url, page.paragraphs)
        self.index_page(url, counter)
        return counter

    def add(self, term: str, term_counter: TermCounter) -> None:
        """Add the page labelled by ``term_counter`` to the URLSet of ``term``."""
        self.store.set_add(url_set_key(term), term_counter.label)

    # ----- Queries -----

    def is_indexed(self, url: str) -> bool:
        return self.store.exists(term_counter_key(url))

    def urls_for_term(self, term: str) -> Set[str]:
        """Return the URLs containing ``term``; empty when the term is unknown."""
        return self.store.set_members(url_set_key(term))

    def url_set(self, term: str) -> URLSet:
        return url_set_from_members(term, self.urls_for_term(term))

    def count_at(self, url: str, term: str) -> int:
        """Return how many times ``term`` appears at ``url``.

        Raises `TermNotFound` when the URL was never indexed or the term is
        not recorded for it. A missing term is never reported as 0.
        """
        key = term_counter_key(url)
        raw = self.store.hash_get(key, term)
        if raw is None:
            raise TermNotFound(url, term)
        return decode_count(key, term, raw)

    def counts_for_term(self, term: str) -> Dict[str, int]:
        """Map each URL containing ``term`` to the term's count there.

        One store round-trip per URL, in sequence.
        """
        return {url: self.count_at(url, term) for url in self.urls_for_term(term)}

    def term_counter(self, url: str) -> TermCounter:
        """Return the stored counts for ``url``."""
        key = term_counter_key(url)
        raw = self.store.hash_get_all(key)
        if not raw:
            raise TermNotFound(url)
        return decode_term_counter(url, key, raw)

    # ----- Enumeration and maintenance (development and testing only) -----

    def indexed_terms(self) -> Set[str]:
        """Return every term that has a URLSet. Scans the whole key space."""
        return {term_from_url_set_key(key) for key in self.url_set_keys()}

    def url_set_keys(self) -> Set[str]:
        return self.store.keys_matching(URL_SET_PREFIX)

    def term_counter_keys(self) -> Set[str]:
        return self.store.keys_matching(TERM_COUNTER_PREFIX)

    def clear_url_sets(self) -> int:
        """Delete all URLSet records. Returns the number of keys deleted."""
        return self._delete_keys(self.url_set_keys())

    def clear_term_counters(self) -> int:
        """Delete all TermCounter records. Returns the number of keys deleted."""
        return self._delete_keys(self.term_counter_keys())

    def clear_all(self) -> int:
        """Delete every key in the store, index-related or not."""
        return self._delete_keys(self.store.keys_matching(""))

    def dump_index(self) -> Iterator[Tuple[str, str, int]]:
        """Yield ``(term, url, count)`` for the whole index, sorted."""
        for term in sorted(self.indexed_terms()):
            for url in sorted(self.urls_for_term(term)):
                yield term, url, self.count_at(url, term)

    def log_index(self, log: Optional[logging.Logger] = None) -> None:
        """Write the contents of the index to ``log`` at INFO level."""
        log = log or logger
        current = None
        for term, url, count in self.dump_index():
            if term != current:
                log.info("%s", term)
                current = term
            log.info("    %s %d", url, count)

    def _delete_keys(self, keys: Set[str]) -> int:
        if not keys:
            return 0
        with self.store.transaction() as trans:
            for key in keys:
                trans.delete(key)
        logger.info("Deleted %d keys", len(keys))
        return len(keys)
