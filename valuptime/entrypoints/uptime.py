"""Uptime report entrypoint.

Computes uptime and upgrade points for every validator that signed a block
in the requested range, prints a table, and writes a CSV file.
"""

import argparse
import asyncio
import os
import sys

import bittensor as bt
from dotenv import load_dotenv

from valuptime.config import UptimeSettings, load_settings
from valuptime.engine.errors import ConfigError, UptimeError
from valuptime.engine.models import UptimeReport
from valuptime.report import render_table, write_csv


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Validator uptime and upgrade points")
    bt.logging.add_args(parser)
    parser.add_argument("--start-block", type=int, required=True, help="First block height (inclusive)")
    parser.add_argument("--end-block", type=int, required=True, help="Last block height (inclusive)")
    parser.add_argument("--config", type=str, default=None, help="YAML config file")
    parser.add_argument("--database-url", type=str, default=None, help="SQLAlchemy async database URL")
    parser.add_argument("--data-dir", type=str, default=None, help="Directory holding blocks/validators JSON exports")
    parser.add_argument("--node-rewards", type=int, default=None)
    parser.add_argument("--output", type=str, default=None, help="CSV output path (default: result.csv)")
    parser.add_argument("--call-timeout", type=float, default=None, help="Deadline in seconds per store call")
    parser.add_argument(
        "--store-aggregation",
        action="store_true",
        default=None,
        help="Group participation inside the store instead of in-process",
    )
    parser.add_argument("--no-table", action="store_true", help="Skip the console table")
    return parser


def build_store(settings: UptimeSettings):
    if settings.database_url and settings.data_dir:
        raise ConfigError("set only one of database_url / data_dir")
    if settings.database_url:
        from valuptime.store.sql import SQLStore
        return SQLStore(settings.database_url)
    if settings.data_dir:
        from valuptime.store.filesystem import FilesystemStore
        return FilesystemStore(settings.data_dir)
    raise ConfigError("a database_url or data_dir is required")


async def compute_report(settings: UptimeSettings, start_block: int, end_block: int) -> UptimeReport:
    from valuptime.pipeline import UptimeCalculator

    store = build_store(settings)
    try:
        calculator = UptimeCalculator(
            source=store,
            registry=store,
            config=settings.scoring_config(),
            call_timeout=settings.call_timeout,
            store_aggregation=settings.store_aggregation,
        )
        return await calculator.run(start_block, end_block)
    finally:
        await store.close()


def main(argv: list[str] | None = None) -> int:
    # Load .env if not in test mode
    if os.environ.get("UPTIME_TEST_MODE") != "true":
        load_dotenv()

    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(
            config_file=args.config,
            overrides={
                "database_url": args.database_url,
                "data_dir": args.data_dir,
                "node_rewards": args.node_rewards,
                "output": args.output,
                "call_timeout": args.call_timeout,
                "store_aggregation": args.store_aggregation,
            },
        )
        bt.logging.info({
            "uptime_config": {
                "start_block": args.start_block,
                "end_block": args.end_block,
                "node_rewards": settings.node_rewards,
                "scoring": settings.scoring_config().model_dump(),
                "output": settings.output,
            }
        })
        report = asyncio.run(compute_report(settings, args.start_block, args.end_block))

        if not args.no_table:
            print(render_table(report))
        path = write_csv(report, settings.output)
    except (UptimeError, OSError) as e:
        bt.logging.error({"uptime": {"error": type(e).__name__, "detail": str(e)}})
        return 1

    bt.logging.info({"uptime": {"csv": str(path), "validators": len(report.validators)}})
    return 0


if __name__ == "__main__":
    sys.exit(main())
