# ABOUTME: CLI entry point for hn-digest.
# ABOUTME: Supports 'serve', 'fetch', 'purge' and 'export' commands.

import argparse
import asyncio
import sys
from pathlib import Path

import structlog
import uvicorn

from hn_digest.config import get_settings
from hn_digest.errors import HNDigestError
from hn_digest.logging_config import setup_logging

log = structlog.get_logger()


def cmd_serve(args: argparse.Namespace) -> None:
    """Start the API server."""
    settings = get_settings()
    host = args.host or settings.host
    port = args.port or settings.port
    log.info("starting_server", host=host, port=port)
    uvicorn.run(
        "hn_digest.web.app:create_app", factory=True, host=host, port=port, reload=args.reload
    )


def cmd_fetch(_args: argparse.Namespace) -> None:
    """Fetch, enrich and store trending stories."""
    asyncio.run(_run_fetch())


def cmd_purge(args: argparse.Namespace) -> None:
    """Delete stories not refreshed within the retention window."""
    asyncio.run(_run_purge(args.days))


def cmd_export(args: argparse.Namespace) -> None:
    """Write stored stories and comments to a static JSON file."""
    asyncio.run(_run_export(args.output, args.limit))


async def _run_fetch() -> None:
    from hn_digest.services.container import build_services

    services = build_services(get_settings())
    await services.start()
    try:
        result = await services.pipeline.run_cycle()
        if result is not None:
            log.info("fetch_done", stories=result.stories, comments=result.comments_inserted)
    except HNDigestError as e:
        log.error("fetch_failed", error=str(e))
        sys.exit(1)
    finally:
        await services.close()


async def _run_purge(days: int | None) -> None:
    from hn_digest.services.container import build_services

    services = build_services(get_settings())
    await services.start()
    try:
        stories, comments = await services.pipeline.purge(days)
        log.info("purge_done", stories=stories, comments=comments)
    finally:
        await services.close()


async def _run_export(output: Path | None, limit: int) -> None:
    from hn_digest.services.container import build_services
    from hn_digest.services.export import export_snapshot

    settings = get_settings()
    services = build_services(settings)
    await services.start()
    try:
        ok = await export_snapshot(services.store, output or settings.export_path, limit)
    finally:
        await services.close()
    if not ok:
        sys.exit(1)


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="hn-digest", description="Trending Hacker News threads, translated and summarized"
    )
    subparsers = parser.add_subparsers(dest="command")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", type=str, default=None)
    serve_parser.add_argument("--port", type=int, default=None)
    serve_parser.add_argument("--reload", action="store_true")

    # fetch
    subparsers.add_parser("fetch", help="Run one fetch cycle")

    # purge
    purge_parser = subparsers.add_parser("purge", help="Delete old stories and comments")
    purge_parser.add_argument("--days", type=int, default=None)

    # export
    export_parser = subparsers.add_parser("export", help="Export a static JSON snapshot")
    export_parser.add_argument("--output", type=Path, default=None)
    export_parser.add_argument("--limit", type=int, default=60)

    args = parser.parse_args()
    setup_logging(get_settings().log_level)

    commands = {"serve": cmd_serve, "fetch": cmd_fetch, "purge": cmd_purge, "export": cmd_export}
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        sys.exit(1)
    command(args)


if __name__ == "__main__":
    main()
