from __future__ import annotations

import json

import pytest

from linkgraph.crawler import CrawlConfig, load_config, save_config
from linkgraph.crawler.constants import (
    DEFAULT_CONCURRENCY,
    DEFAULT_FRONTIER_CAPACITY,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_TIMEOUT_SECONDS,
)


def test_defaults() -> None:
    config = CrawlConfig(seed_url="  https://example.com  ")

    assert config.seed_url == "https://example.com"
    assert config.concurrency == DEFAULT_CONCURRENCY == 5
    assert config.frontier_capacity == DEFAULT_FRONTIER_CAPACITY == 1000
    assert config.timeout_seconds == DEFAULT_TIMEOUT_SECONDS
    assert config.max_redirects == DEFAULT_MAX_REDIRECTS
    assert not config.wants_export


@pytest.mark.parametrize(
    "kwargs",
    [
        {"seed_url": ""},
        {"seed_url": "example.com"},
        {"seed_url": "ftp://example.com"},
        {"seed_url": "https://example.com", "concurrency": 0},
        {"seed_url": "https://example.com", "frontier_capacity": -1},
        {"seed_url": "https://example.com", "timeout_seconds": 0},
        {"seed_url": "https://example.com", "max_redirects": -1},
        {"seed_url": "https://example.com", "export_format": "xml", "output_path": "o.xml"},
        {"seed_url": "https://example.com", "export_format": "json"},
        {"seed_url": "https://example.com", "output_path": "out.json"},
    ],
)
def test_invalid_config(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        CrawlConfig(**kwargs)


def test_export_format_is_normalized() -> None:
    config = CrawlConfig(seed_url="https://example.com", export_format=" CSV ", output_path="out.csv")

    assert config.export_format == "csv"
    assert config.wants_export


def test_from_dict_accepts_url_alias_and_coerces() -> None:
    config = CrawlConfig.from_dict(
        {"url": "https://example.com", "concurrency": "8", "timeout_seconds": "2.5"}
    )

    assert config.seed_url == "https://example.com"
    assert config.concurrency == 8
    assert config.timeout_seconds == 2.5


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"seed_url": "https://example.com", "concurrency": True},
        {"seed_url": "https://example.com", "frontier_capacity": "many"},
    ],
)
def test_from_dict_rejects_bad_payloads(payload: dict) -> None:
    with pytest.raises(ValueError):
        CrawlConfig.from_dict(payload)


def test_request_headers_keep_explicit_user_agent() -> None:
    config = CrawlConfig(
        seed_url="https://example.com",
        default_headers={"User-Agent": "custom", "Accept": "text/html"},
    )
    assert config.request_headers() == {"User-Agent": "custom", "Accept": "text/html"}


@pytest.mark.parametrize("suffix", [".json", ".yaml"])
def test_save_and_load(tmp_path, suffix: str) -> None:
    config = CrawlConfig(
        seed_url="https://example.com",
        concurrency=3,
        export_format="html",
        output_path="report.html",
        metadata={"run": "nightly"},
    )
    path = tmp_path / f"crawl{suffix}"

    save_config(config, path)

    assert load_config(path) == config


def test_load_yaml_written_by_hand(tmp_path) -> None:
    path = tmp_path / "crawl.yml"
    path.write_text("seed_url: https://example.com/docs\nconcurrency: 2\n", encoding="utf-8")

    config = load_config(path)

    assert config.seed_url == "https://example.com/docs"
    assert config.concurrency == 2


def test_load_rejects_non_mapping_and_unknown_suffix(tmp_path) -> None:
    listing = tmp_path / "crawl.json"
    listing.write_text(json.dumps(["https://example.com"]), encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(listing)

    with pytest.raises(ValueError):
        load_config(tmp_path / "crawl.toml")
