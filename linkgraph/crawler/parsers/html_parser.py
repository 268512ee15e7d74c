"""HTML link discovery with BeautifulSoup."""

from __future__ import annotations

from dataclasses import dataclass

from bs4 import BeautifulSoup


@dataclass(slots=True)
class HTMLParserConfig:
    """Config for HTML link extraction."""

    parser_name: str = "lxml"
    include_nofollow_links: bool = True


class HTMLLinkExtractor:
    """Return raw `href` values of `<a>` elements in document order.

    Hrefs are not resolved or filtered here; the crawl engine resolves them
    against the page URL and applies scope rules.
    """

    def __init__(self, config: HTMLParserConfig | None = None) -> None:
        self.config = config or HTMLParserConfig()

    def extract_links(self, html: str | bytes) -> list[str]:
        if not html or not html.strip():
            return []

        soup = BeautifulSoup(html, self.config.parser_name)

        links: list[str] = []
        for anchor in soup.find_all("a", href=True):
            if not self.config.include_nofollow_links:
                rel_values = {value.lower() for value in (anchor.get("rel") or [])}
                if "nofollow" in rel_values:
                    continue

            href = anchor.get("href")
            if isinstance(href, list):
                href = " ".join(href)
            if href and href.strip():
                links.append(href)

        return links


__all__ = [
    "HTMLLinkExtractor",
    "HTMLParserConfig",
]
