"""CLI entrypoint for the parliamentary roster cache."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from roster.common.config_loader import DEFAULT_CONFIG_PATH, load_config
from roster.common.constants import ALL_REGIONS, EXIT_HARD_FAIL, EXIT_PARTIAL, EXIT_SUCCESS, SUPPORTED_REGIONS
from roster.common.errors import RosterError
from roster.common.logging import build_logger, log_event
from roster.common.models import RoleFilter
from roster.common.time_utils import to_iso
from roster.context import RosterContext, build_context
from roster.refresh.coordinator import RefreshResult
from roster.refresh.scheduler_host import AsyncIOSchedulerHost

COMMANDS = ("refresh", "force-refresh", "status", "search", "show", "clear-cache", "watch")

logger = logging.getLogger(__name__)


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("query", nargs="?", default="", help="search text, or record id for 'show'")
    parser.add_argument("--config", default=str(DEFAULT_CONFIG_PATH))
    parser.add_argument("--overlay-config", default=None)
    parser.add_argument("--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", default=None)
    parser.add_argument("--ephemeral", action="store_true", help="keep the cache in memory only")
    parser.add_argument("--region", default=None, choices=[ALL_REGIONS, *SUPPORTED_REGIONS])
    parser.add_argument("--category", default=None)
    parser.add_argument("--chamber", default=None)
    parser.add_argument("--role", default=None, choices=[role.value for role in RoleFilter])
    parser.add_argument("--no-refresh", action="store_true", help="read the cache without a freshness check")
    return parser.parse_args(argv)


def _result_payload(result: RefreshResult) -> dict:
    return {
        "updated": result.updated,
        "success": result.success,
        "outcome": result.outcome.value,
        "last_updated_at": to_iso(result.last_updated_at),
        "next_update_at": to_iso(result.next_update_at),
        "error": result.error,
        "record_count": result.record_count,
    }


def _emit(payload) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _refresh_exit_code(result: RefreshResult) -> int:
    return EXIT_SUCCESS if result.success else EXIT_PARTIAL


async def _watch(ctx: RosterContext) -> int:
    host = AsyncIOSchedulerHost()
    ctx.trigger.register(host)
    host.start()
    try:
        await ctx.trigger.run()
        await asyncio.Event().wait()
    finally:
        host.shutdown()
    return EXIT_SUCCESS


async def dispatch(args: argparse.Namespace, ctx: RosterContext) -> int:
    await ctx.start()

    if args.command == "refresh":
        result = await ctx.refresh()
        _emit(_result_payload(result))
        return _refresh_exit_code(result)

    if args.command == "force-refresh":
        result = await ctx.force_refresh()
        _emit(_result_payload(result))
        return _refresh_exit_code(result)

    if args.command == "status":
        _emit({**ctx.get_update_status().to_dict(), "record_count": len(ctx.cache)})
        return EXIT_SUCCESS

    if args.command == "clear-cache":
        return EXIT_SUCCESS if await ctx.coordinator.clear() else EXIT_PARTIAL

    if args.command == "watch":
        return await _watch(ctx)

    if not args.no_refresh:
        await ctx.refresh()

    if args.command == "show":
        record = ctx.get_by_id(args.query)
        if record is None:
            log_event(logger, f"no record with id {args.query}", level=logging.WARNING, event="SHOW", status="missing")
            return EXIT_PARTIAL
        _emit(record.to_dict())
        return EXIT_SUCCESS

    role = RoleFilter(args.role) if args.role else None
    records = ctx.search(args.query, region=args.region, category=args.category, chamber=args.chamber, role=role)
    _emit([record.to_dict() for record in records])
    return EXIT_SUCCESS


def run_command(args: argparse.Namespace, *, context: RosterContext | None = None) -> int:
    if context is None:
        config = load_config(
            Path(args.config),
            overlay_path=Path(args.overlay_config) if args.overlay_config else None,
        )
        if args.ephemeral:
            config = replace(config, store=replace(config.store, backend="memory"))
        build_logger(args.log_level or config.log_level, Path(args.log_file) if args.log_file else None)
        context = build_context(config)
    return asyncio.run(dispatch(args, context))


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    try:
        return run_command(args)
    except KeyboardInterrupt:
        return EXIT_SUCCESS
    except RosterError as exc:
        log_event(logger, f"command failed: {exc}", level=logging.ERROR, event="COMMAND_FAIL", status="error", error_code=exc.error_code)
        return EXIT_HARD_FAIL
    except Exception:
        logger.exception("unexpected failure")
        return EXIT_HARD_FAIL


if __name__ == "__main__":
    raise SystemExit(main())
