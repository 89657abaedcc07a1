"""Term extraction: turns page text into a `TermCounter`.

Terms are lowercased runs of word characters; punctuation separates terms.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Union

from termindex.storage.models import TermCounter

_PUNCTUATION = re.compile(r"[^\w\s]|_")


def tokenize(text: str) -> List[str]:
    """Split ``text`` into normalized terms."""
    return _PUNCTUATION.sub(" ", text).lower().split()


def count_terms(url: str, content: Union[str, Iterable[str]]) -> TermCounter:
    """Count the terms of a page.

    ``content`` is either the page text or an iterable of text blocks
    (e.g. paragraphs).
    """
    counter = TermCounter(label=url)
    blocks = [content] if isinstance(content, str) else content
    for block in blocks:
        for term in tokenize(block):
            counter.increment(term)
    return counter
