"""Data structures and the abstract interface for page parsers.

Parsers extract the indexable text of a fetched page. Concrete
implementations should subclass `BasePageParser` and implement `parse()`.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List


@dataclass(slots=True)
class ParsedPage:
    """Container for parsed page outputs.

    Attributes
    ----------
    url: str
        The page URL, used as the label of its term counter.
    paragraphs: list[str]
        Text of each paragraph, in document order.
    """

    url: str
    paragraphs: List[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(self.paragraphs)


class BasePageParser(ABC):
    """Abstract page parser interface."""

    @abstractmethod
    def parse(self, url: str, content: str) -> ParsedPage:
        """Parse page content and return a `ParsedPage`.

        Implementations should raise `termindex.exceptions.ParsingError` on failure.
        """
        raise NotImplementedError
