"""Parser package exports."""

from .html_parser import HTMLLinkExtractor, HTMLParserConfig

__all__ = [
    "HTMLLinkExtractor",
    "HTMLParserConfig",
]
