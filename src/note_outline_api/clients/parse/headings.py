import re
from typing import override

import lxml.html
from lxml.etree import ParserError

from note_outline_api.clients.parse.base import BaseOutlineParser
from note_outline_api.models.outline import PageExtract

WHITESPACE_PATTERN = re.compile(r"\s+")


def clean_text(text: str) -> str:
    """Collapse runs of whitespace into single spaces and trim the result."""
    return WHITESPACE_PATTERN.sub(" ", text).strip()


class HeadingParser(BaseOutlineParser):
    """Extract the title, first H1 and every H2/H3 from an HTML document."""

    def _first_text(self, html: lxml.html.HtmlElement, tag: str) -> str:
        elements = html.xpath(f"//{tag}")
        if not elements:
            return ""

        return clean_text(elements[0].text_content())

    def _all_texts(self, html: lxml.html.HtmlElement, tag: str) -> list[str]:
        texts = (clean_text(element.text_content()) for element in html.xpath(f"//{tag}"))
        return [text for text in texts if text]

    @override
    def parse(self, html: str) -> PageExtract:
        if not html.strip():
            return PageExtract()

        # The body is already decoded, so re-encode it and pin the parser to utf-8 to ignore any charset declarations.
        try:
            html_element = lxml.html.fromstring(html.encode("utf-8"), parser=lxml.html.HTMLParser(encoding="utf-8"))
        except ParserError:
            return PageExtract()

        return PageExtract.capped(
            page_title=self._first_text(html_element, "title"),
            h1=self._first_text(html_element, "h1"),
            h2=self._all_texts(html_element, "h2"),
            h3=self._all_texts(html_element, "h3"),
        )
