"""linkgraph package exports."""

from .crawler import CrawlConfig, CrawlEngine, CrawlOutcome, CrawlResult, EdgeSink, crawl

__version__ = "0.1.0"

__all__ = [
    "CrawlConfig",
    "CrawlEngine",
    "CrawlOutcome",
    "CrawlResult",
    "EdgeSink",
    "crawl",
]
