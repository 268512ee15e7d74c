"""CLI entrypoint for crawling one site and printing or exporting its link graph."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Any, TextIO

if __package__ in {None, ""}:
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

from linkgraph.crawler import (
    SUPPORTED_EXPORT_FORMATS,
    CrawlConfig,
    CrawlEngine,
    CrawlResult,
    EdgeSink,
    export_edges,
    load_config_payload,
    save_config,
    write_grouped_output,
)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="A concurrent web crawler that discovers and maps links within a domain.",
    )

    parser.add_argument(
        "--url",
        type=str,
        default=None,
        help="The starting URL to crawl. Required unless --config provides seed_url.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to JSON/YAML crawl config. Command-line flags override it.",
    )
    parser.add_argument(
        "--max_parallel",
        "--max-parallel",
        dest="max_parallel",
        type=int,
        default=None,
        help="Maximum number of concurrent workers (default 5).",
    )
    parser.add_argument(
        "--frontier_capacity",
        type=int,
        default=None,
        help="Maximum number of URLs waiting in the frontier (default 1000).",
    )
    parser.add_argument("--timeout_seconds", type=float, default=None)
    parser.add_argument("--max_redirects", type=int, default=None)
    parser.add_argument("--user_agent", type=str, default=None)

    parser.add_argument(
        "--format",
        dest="export_format",
        type=str,
        default=None,
        help=f"Output format for export ({', '.join(SUPPORTED_EXPORT_FORMATS)}).",
    )
    parser.add_argument(
        "--output_path",
        "--outputPath",
        dest="output_path",
        type=str,
        default=None,
        help="Path to write the export file. Required with --format.",
    )

    parser.add_argument(
        "--save_config",
        type=Path,
        default=None,
        help="Write the effective config to this JSON/YAML path before crawling.",
    )
    parser.add_argument(
        "--print_stats_json",
        action="store_true",
        help="Print full stats JSON to stderr after the run.",
    )
    parser.add_argument(
        "--log_file",
        type=Path,
        default=None,
        help="Also write logs to this file.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> CrawlConfig:
    if args.config is not None:
        payload: dict[str, Any] = load_config_payload(args.config)
    else:
        payload = {}

    if args.url is not None:
        payload["seed_url"] = args.url

    if not payload.get("seed_url") and not payload.get("url"):
        raise ValueError("No seed URL provided. Use --url or --config.")

    if args.max_parallel is not None:
        payload["concurrency"] = args.max_parallel
    if args.frontier_capacity is not None:
        payload["frontier_capacity"] = args.frontier_capacity
    if args.timeout_seconds is not None:
        payload["timeout_seconds"] = args.timeout_seconds
    if args.max_redirects is not None:
        payload["max_redirects"] = args.max_redirects
    if args.user_agent is not None:
        payload["user_agent"] = args.user_agent

    if args.export_format is not None:
        payload["export_format"] = args.export_format
    if args.output_path is not None:
        payload["output_path"] = args.output_path

    return CrawlConfig.from_dict(payload)


def setup_logging(verbose: bool, log_file: Path | None = None) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)

    # stdout carries the grouped edge listing, so logs go to stderr.
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setLevel(log_level)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # Connection-pool chatter is not useful at crawl level.
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def print_summary(result: CrawlResult, *, print_stats_json: bool, stream: TextIO | None = None) -> None:
    out = stream if stream is not None else sys.stderr
    stats = result.stats

    print("\n=== Crawl Complete ===", file=out)
    print(f"seed_url: {result.seed_url}", file=out)
    print(f"outcome: {result.outcome.value}", file=out)

    print("\n--- Core Stats ---", file=out)
    for key in [
        "frontier_admitted",
        "frontier_skipped_seen",
        "frontier_rejected_closed",
        "fetched_ok",
        "fetched_error",
        "skipped_non_html",
        "edges_recorded",
        "duration_seconds",
    ]:
        if key in stats:
            print(f"{key}: {stats[key]}", file=out)

    if print_stats_json:
        print("\n--- Full Result JSON ---", file=out)
        print(json.dumps(result.to_json(), indent=2, sort_keys=True), file=out)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(verbose=args.verbose, log_file=args.log_file)

    try:
        config = build_config(args)
    except Exception as exc:
        logging.error("Failed to build config: %s", exc)
        return 2

    if args.save_config is not None:
        try:
            save_config(config, args.save_config)
        except Exception as exc:
            logging.error("Failed to save config: %s", exc)
            return 2

    sink = EdgeSink()

    try:
        engine = CrawlEngine(config, sink=sink)
        result = engine.run()

        if not result.completed:
            print("Crawl cancelled by user", file=sys.stderr)
            return 130

        if config.wants_export:
            path = export_edges(sink.edges(), config.output_path, config.export_format)
            print(f"Results exported to {path}", file=sys.stderr)
        else:
            write_grouped_output(sink.edges(), sys.stdout)
    except KeyboardInterrupt:
        print("Crawl cancelled by user", file=sys.stderr)
        return 130
    except Exception:
        logging.exception("Crawl failed")
        return 1

    if args.verbose or args.print_stats_json:
        print_summary(result, print_stats_json=args.print_stats_json)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
