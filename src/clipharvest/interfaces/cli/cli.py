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

from clipharvest.infrastructure.config import AppConfig, load_config
from clipharvest.infrastructure.logging.setup import configure_logging
from clipharvest.interfaces.app import create_app
from clipharvest.interfaces.composition import build_pipeline

log = structlog.get_logger(__name__)


def _add_config_flags(parser: argparse.ArgumentParser) -> None:
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
    parser.add_argument(
        "--log-file",
        default=None,
        help="Append JSON-lines logs to this file.",
    )


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="clipharvest")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the HTTP API.")
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

    resolve = sub.add_parser("resolve", help="Resolve one link and print JSON.")
    resolve.add_argument("text", help="Share link or text containing one.")
    _add_config_flags(resolve)

    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.command is None:
        parser.error("a command is required (serve, resolve)")
    return args


def _load(args: argparse.Namespace) -> AppConfig:
    cli_overrides: dict[str, Any] = {}
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    if args.log_format:
        cli_overrides["log_format"] = args.log_format
    if args.log_file:
        cli_overrides["log_file"] = args.log_file

    return load_config(
        config_path=Path(args.config) if args.config else None,
        dotenv_path=Path(args.dotenv) if args.dotenv else None,
        cli_overrides=cli_overrides,
    )


async def _resolve_once(config: AppConfig, text: str) -> dict[str, Any]:
    pipeline = build_pipeline(config)
    try:
        outcome = await pipeline.resolve_uc.execute(text)
    finally:
        await pipeline.aclose()
    return outcome.to_dict()


def start(argv: Iterable[str] | None = None) -> int:
    """
    Process entrypoint.

    Loads config exactly once, then either serves the API or resolves a
    single link.
    """
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)
    config = _load(args)
    log_config = configure_logging(config)

    if args.command == "resolve":
        result = asyncio.run(_resolve_once(config, args.text))
        print(json.dumps(result, ensure_ascii=False, indent=2))
        return 0 if result.get("success") else 1

    host = args.host or os.getenv("HOST", "0.0.0.0")
    port = int(args.port or os.getenv("PORT", "7980"))
    uvicorn.run(
        create_app(config),
        host=host,
        port=port,
        log_config=log_config,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(start())
