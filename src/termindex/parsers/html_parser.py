"""HTML parser that extracts paragraph text from a fetched page.

Only ``<p>`` elements are indexed. For Wikipedia articles the paragraphs are
taken from the ``mw-content-text`` container so navigation and footer text
are left out.
"""

from __future__ import annotations

from typing import List, Optional

from bs4 import BeautifulSoup  # type: ignore[import-untyped]

from termindex.exceptions import ParsingError

from .base_parser import BasePageParser, ParsedPage

WIKIPEDIA_CONTENT_ID = "mw-content-text"


class HTMLPageParser(BasePageParser):
    """Parser for HTML pages."""

    def __init__(self, *, content_id: Optional[str] = None) -> None:
        self.content_id = content_id

    def parse(self, url: str, content: str) -> ParsedPage:
        return self.parse_html(url, content, content_id=self.content_id)

    def parse_html(self, url: str, html: str, *, content_id: Optional[str] = None) -> ParsedPage:
        """Parse HTML string content into a `ParsedPage`.

        When ``content_id`` is given, only paragraphs below the element with
        that id are collected; a page without such an element yields none.
        """
        if not isinstance(html, str):
            raise ParsingError(f"Expected HTML text for {url!r}, got {type(html).__name__}")
        soup = BeautifulSoup(html, "html.parser")

        root = soup
        if content_id:
            root = soup.find(id=content_id)
            if root is None:
                return ParsedPage(url=url)

        paragraphs: List[str] = []
        for tag in root.find_all("p"):
            text = tag.get_text(" ", strip=True)
            if text:
                paragraphs.append(text)
        return ParsedPage(url=url, paragraphs=paragraphs)
