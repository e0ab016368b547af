from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from tubegarr.domain.entities.streams import StreamInfo
from tubegarr.domain.exceptions import ExtractionError
from tubegarr.infrastructure.config import AppConfig, load_config
from tubegarr.infrastructure.logging.setup import configure_logging
from tubegarr.interfaces.api.streams.presenter import render_stream_info
from tubegarr.interfaces.composition import (
    build_http_client,
    build_stream_info_use_case,
)
from tubegarr.interfaces.main import build_app

log = structlog.get_logger(__name__)


def _add_config_flags(parser: argparse.ArgumentParser) -> None:
    # Config wiring flags (no business logic)
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file.",
    )
    parser.add_argument(
        "--dotenv",
        default=None,
        help="Path to .env file.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="tubegarr")
    commands = parser.add_subparsers(dest="command", required=True)

    fetch = commands.add_parser("fetch", help="Extract the streams of one video.")
    fetch.add_argument("url", help="Video URL or 11 character id.")
    fetch.add_argument(
        "--ios",
        action="store_true",
        default=None,
        help="Also query the iOS client.",
    )
    fetch.add_argument(
        "--json",
        action="store_true",
        help="Print the full result as JSON.",
    )
    _add_config_flags(fetch)

    serve = commands.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument(
        "--host",
        default=None,
        help="Bind host (overrides HOST env).",
    )
    serve.add_argument(
        "--port",
        default=None,
        type=int,
        help="Bind port (overrides PORT env).",
    )
    _add_config_flags(serve)

    return parser.parse_args(list(argv) if argv is not None else None)


def _load(args: argparse.Namespace) -> AppConfig:
    cli_overrides: dict[str, Any] = {}
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    if args.log_format:
        cli_overrides["log_format"] = args.log_format
    if getattr(args, "ios", None):
        cli_overrides["youtube_fetch_ios"] = True

    return load_config(
        config_path=Path(args.config) if args.config else None,
        dotenv_path=Path(args.dotenv) if args.dotenv else None,
        cli_overrides=cli_overrides,
    )


def _print_summary(info: StreamInfo) -> None:
    print(f"{info.name} ({info.id})")
    print(f"  uploader: {info.uploader_name}  duration: {info.duration}s")
    for label, streams in (
        ("audio", info.audio_streams),
        ("video", info.video_streams),
        ("video-only", info.video_only_streams),
    ):
        for stream in streams:
            print(f"  [{label}] itag={stream.itag} {stream.media_format.mime_type}")
    if info.dash_mpd_url:
        print(f"  dash: {info.dash_mpd_url}")
    if info.hls_url:
        print(f"  hls: {info.hls_url}")
    for error in info.errors:
        print(f"  warning: {error}")


async def _fetch(config: AppConfig, url: str) -> StreamInfo:
    async with build_http_client(config) as http_client:
        use_case = build_stream_info_use_case(config, http_client)
        return await use_case.fetch_stream_info(url)


def _run_fetch(config: AppConfig, args: argparse.Namespace) -> int:
    try:
        info = asyncio.run(_fetch(config, args.url))
    except ExtractionError as e:
        log.error("fetch_failed", url=args.url, kind=e.kind, reason=e.reason)
        print(f"error: {e.kind}: {e.reason}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(render_stream_info(info), indent=2, ensure_ascii=False))
    else:
        _print_summary(info)
    return 0


def start(argv: Iterable[str] | None = None) -> int:
    """
    Process entrypoint.

    Load config exactly once here, then dispatch to the subcommand.
    """
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)
    config = _load(args)
    log_config = configure_logging(config)

    if args.command == "fetch":
        return _run_fetch(config, args)

    host = args.host or os.getenv("HOST", "0.0.0.0")
    port = int(args.port or os.getenv("PORT", "7980"))
    uvicorn.run(
        build_app(config),
        host=host,
        port=port,
        log_config=log_config,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(start())
