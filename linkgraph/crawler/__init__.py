"""Crawler package: config, shared types, frontier, and the crawl engine."""

from .config import CrawlConfig, load_config, load_config_payload, save_config
from .constants import DEFAULT_CONCURRENCY, DEFAULT_FRONTIER_CAPACITY, SUPPORTED_EXPORT_FORMATS
from .dedup import VisitedSet
from .engine import CrawlEngine, crawl
from .export import CSVExporter, HTMLExporter, JSONExporter, export_edges, get_exporter
from .fetcher import Fetcher
from .frontier import EnqueueResult, EnqueueStatus, Frontier
from .parsers import HTMLLinkExtractor, HTMLParserConfig
from .sink import EdgeSink, group_edges, write_grouped_output
from .stats import StatsCollector
from .termination import WorkTracker
from .types import (
    ContentKind,
    CrawlOutcome,
    CrawlResult,
    CrawlStage,
    Edge,
    FetchResult,
    infer_content_kind,
    utc_now_iso,
)
from .url import host_from_url, is_http_url, is_url_in_scope, normalize_url, resolve_url

__all__ = [
    "CSVExporter",
    "ContentKind",
    "CrawlConfig",
    "CrawlEngine",
    "CrawlOutcome",
    "CrawlResult",
    "CrawlStage",
    "DEFAULT_CONCURRENCY",
    "DEFAULT_FRONTIER_CAPACITY",
    "Edge",
    "EdgeSink",
    "EnqueueResult",
    "EnqueueStatus",
    "FetchResult",
    "Fetcher",
    "Frontier",
    "HTMLExporter",
    "HTMLLinkExtractor",
    "HTMLParserConfig",
    "JSONExporter",
    "SUPPORTED_EXPORT_FORMATS",
    "StatsCollector",
    "VisitedSet",
    "WorkTracker",
    "crawl",
    "export_edges",
    "get_exporter",
    "group_edges",
    "host_from_url",
    "infer_content_kind",
    "is_http_url",
    "is_url_in_scope",
    "load_config",
    "load_config_payload",
    "normalize_url",
    "resolve_url",
    "save_config",
    "utc_now_iso",
    "write_grouped_output",
]
