"""
main.py — EdgeSched Entry Point

Usage:
    edgesched                               # default settings, run until Ctrl-C
    edgesched --config path/to/config.yaml
    edgesched --strategy priority --duration 30
    edgesched --log-level DEBUG
    python -m edgesched ...
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from typing import Optional

from dotenv import load_dotenv
from rich import box
from rich.console import Console
from rich.table import Table


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="edgesched",
        description="EdgeSched — bounded-concurrency task scheduler",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: $EDGESCHED_CONFIG or config/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override log level from config",
    )
    parser.add_argument(
        "--strategy",
        choices=["fifo", "priority", "deadline", "resource_based"],
        default=None,
        help="Override scheduler.strategy from config",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Stop after this many seconds (default: run until Ctrl-C)",
    )
    return parser.parse_args(argv)


def bootstrap(args: argparse.Namespace):
    """
    Load config, validate it fully, and set up logging.
    Returns (settings, log) ready for use.

    Exits with code 1 (after printing a clear message) if config.yaml has
    invalid values (Pydantic ValidationError) or cross-field problems
    (ConfigError from validate_all()).
    """
    from pydantic import ValidationError

    from edgesched.config.settings import ConfigError, load_settings
    from edgesched.observability.logger import get_logger, setup_logging

    try:
        settings = load_settings(args.config)
    except ValidationError as exc:
        problems = "\n".join(
            f"  • {'.'.join(str(p) for p in e['loc']) or '?'}: {e['msg']}"
            for e in exc.errors()
        )
        print(
            f"\n❌  Config validation failed:\n\n{problems}\n\n"
            f"    Fix config/config.yaml or your environment and restart.\n",
            file=sys.stderr,
        )
        sys.exit(1)
    except OSError as exc:
        print(f"\n❌  Could not read config: {exc}\n", file=sys.stderr)
        sys.exit(1)

    if args.log_level:
        settings.logging.level = args.log_level
    if args.strategy:
        settings.scheduler.strategy = args.strategy

    try:
        settings.validate_all()
    except ConfigError as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(1)

    setup_logging(
        level=settings.log_level,
        log_dir=settings.log_dir,
        json_format=settings.logging.json_format,
        console_output=settings.logging.console_output,
        max_bytes=settings.logging.max_file_size_mb * 1024 * 1024,
        backup_count=settings.logging.backup_count,
    )
    log = get_logger("edgesched.main")
    log.info(
        "edgesched.starting",
        strategy=settings.scheduler.strategy,
        executors=[e.id for e in settings.executors],
        seed_tasks=len(settings.tasks),
    )
    return settings, log


def render_statistics(console: Console, scheduler) -> None:
    stats = scheduler.get_statistics()
    table = Table(title="EdgeSched statistics", box=box.SIMPLE_HEAVY)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for key, value in stats.items():
        if isinstance(value, float):
            value = f"{value:.3f}"
        table.add_row(key, str(value))
    console.print(table)

    executors = Table(title="Executors", box=box.SIMPLE_HEAVY)
    for col in ("id", "kind", "running", "capacity"):
        executors.add_column(col)
    for ex in scheduler.registry.snapshot():
        executors.add_row(ex["id"], ex["kind"], str(ex["running"]), str(ex["capacity"]))
    console.print(executors)


async def run(settings, log, duration: Optional[float] = None) -> int:
    from edgesched.handlers import HandlerRegistry
    from edgesched.scheduler.core import TaskScheduler

    scheduler = TaskScheduler.from_settings(settings, runner=HandlerRegistry.with_builtins())

    for seed in settings.tasks:
        task = scheduler.create_task(seed.to_spec())
        if seed.schedule is not None:
            scheduler.schedule_task(task.id, seed.schedule)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            # Windows event loops have no add_signal_handler
            pass

    await scheduler.start()
    try:
        if duration is not None:
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=duration)
            except asyncio.TimeoutError:
                pass
        else:
            await stop_event.wait()
    finally:
        await scheduler.stop()
        log.info("edgesched.stopped", **{k: v for k, v in scheduler.get_statistics().items() if k != "strategy"})

    render_statistics(Console(), scheduler)
    return 0


def cli(argv: Optional[list[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    settings, log = bootstrap(args)
    try:
        return asyncio.run(run(settings, log, args.duration))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(cli())
