"""Typed crawler configuration with JSON/YAML load/save helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml  # type: ignore

from .constants import (
    DEFAULT_CONCURRENCY,
    DEFAULT_FRONTIER_CAPACITY,
    DEFAULT_HTTP_HEADERS,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    JSON_INDENT,
    SUPPORTED_CONFIG_SUFFIXES,
    SUPPORTED_EXPORT_FORMATS,
)
from .types import JSONDict, JSONValue
from .url import is_http_url


def _as_int(value: Any, key: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid int for '{key}': {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid int for '{key}': {value!r}") from exc


def _as_float(value: Any, key: str) -> float:
    if isinstance(value, bool):
        raise ValueError(f"Invalid float for '{key}': {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid float for '{key}': {value!r}") from exc


def _as_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _normalize_export_format(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized not in SUPPORTED_EXPORT_FORMATS:
        raise ValueError(
            f"Unsupported format '{value}'. Supported formats: {', '.join(SUPPORTED_EXPORT_FORMATS)}"
        )
    return normalized


@dataclass(slots=True)
class CrawlConfig:
    """Top-level crawler configuration used by engine/fetcher/CLI."""

    seed_url: str

    concurrency: int = DEFAULT_CONCURRENCY
    frontier_capacity: int = DEFAULT_FRONTIER_CAPACITY

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    user_agent: str = DEFAULT_USER_AGENT
    default_headers: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HTTP_HEADERS))

    export_format: str | None = None
    output_path: str | None = None

    metadata: dict[str, JSONValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.seed_url = (self.seed_url or "").strip()
        if not self.seed_url:
            raise ValueError("CrawlConfig requires a seed URL")
        if not is_http_url(self.seed_url):
            raise ValueError(
                f"Invalid URL '{self.seed_url}': must be an absolute HTTP or HTTPS URL"
            )

        if self.concurrency <= 0:
            raise ValueError("concurrency must be > 0")
        if self.frontier_capacity <= 0:
            raise ValueError("frontier_capacity must be > 0")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        if self.max_redirects < 0:
            raise ValueError("max_redirects must be >= 0")

        self.export_format = _normalize_export_format(_as_optional_str(self.export_format))
        self.output_path = _as_optional_str(self.output_path)
        if self.export_format and not self.output_path:
            raise ValueError("output_path is required when export_format is set")
        if self.output_path and not self.export_format:
            raise ValueError("export_format is required when output_path is set")

    @property
    def wants_export(self) -> bool:
        return self.export_format is not None and self.output_path is not None

    def request_headers(self) -> dict[str, str]:
        """Return request headers with the configured User-Agent applied."""

        merged: dict[str, str] = dict(self.default_headers)
        merged.setdefault("User-Agent", self.user_agent)
        return merged

    def to_dict(self) -> JSONDict:
        """Serialize config for manifests and reproducibility."""

        return {
            "seed_url": self.seed_url,
            "concurrency": self.concurrency,
            "frontier_capacity": self.frontier_capacity,
            "timeout_seconds": self.timeout_seconds,
            "max_redirects": self.max_redirects,
            "user_agent": self.user_agent,
            "default_headers": self.default_headers,
            "export_format": self.export_format,
            "output_path": self.output_path,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CrawlConfig":
        """Build config from a parsed dictionary."""

        if "seed_url" in payload:
            seed_url = payload["seed_url"]
        elif "url" in payload:
            # Same key as the CLI flag.
            seed_url = payload["url"]
        else:
            raise ValueError("Config missing required key: 'seed_url'")

        return cls(
            seed_url=str(seed_url or ""),
            concurrency=_as_int(payload.get("concurrency", DEFAULT_CONCURRENCY), "concurrency"),
            frontier_capacity=_as_int(
                payload.get("frontier_capacity", DEFAULT_FRONTIER_CAPACITY),
                "frontier_capacity",
            ),
            timeout_seconds=_as_float(
                payload.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS),
                "timeout_seconds",
            ),
            max_redirects=_as_int(
                payload.get("max_redirects", DEFAULT_MAX_REDIRECTS),
                "max_redirects",
            ),
            user_agent=str(payload.get("user_agent", DEFAULT_USER_AGENT)),
            default_headers={
                str(k): str(v)
                for k, v in dict(payload.get("default_headers", DEFAULT_HTTP_HEADERS)).items()
            },
            export_format=_as_optional_str(payload.get("export_format")),
            output_path=_as_optional_str(payload.get("output_path")),
            metadata=dict(payload.get("metadata", {})),
        )


def _load_yaml(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML config at {path} must be a mapping at top level")
    return data


def load_config_payload(path: str | Path) -> dict[str, Any]:
    """Read a JSON/YAML config file into a plain mapping without validating it."""

    config_path = Path(path)
    suffix = config_path.suffix.lower()
    if suffix not in SUPPORTED_CONFIG_SUFFIXES:
        raise ValueError(
            f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
        )

    if suffix == ".json":
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    else:
        payload = _load_yaml(config_path)

    if not isinstance(payload, dict):
        raise ValueError(f"Config at {config_path} must be a mapping")
    return payload


def load_config(path: str | Path) -> CrawlConfig:
    """Load CrawlConfig from JSON/YAML path."""

    return CrawlConfig.from_dict(load_config_payload(path))


def save_config(config: CrawlConfig, path: str | Path) -> None:
    """Save CrawlConfig as JSON or YAML based on file extension."""

    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    suffix = out_path.suffix.lower()
    payload = config.to_dict()

    if suffix == ".json":
        out_path.write_text(
            json.dumps(payload, indent=JSON_INDENT, sort_keys=True) + "\n",
            encoding="utf-8",
        )
        return

    if suffix in {".yaml", ".yml"}:
        out_path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
        return

    raise ValueError(
        f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
    )


__all__ = [
    "CrawlConfig",
    "load_config",
    "load_config_payload",
    "save_config",
]
