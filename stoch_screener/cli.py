"""CLI entry point for the IDX stochastic screener.

This module handles argument parsing and command dispatch.
"""

import argparse
from collections.abc import Callable

from .config import Config
from .exceptions import ConfigError, ValidationError
from .logger import logger
from .market_symbols import get_all_symbols, get_sector_symbols, get_sectors
from .models import ScanMode
from .ui import console, create_sectors_table, print_error


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog="stoch-screener",
        description="IDX Stochastic Screener: batched oscillator / momentum scans with Telegram reports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  stoch-screener --scan oversold                  Scan every IDX symbol once
  stoch-screener --scan momentum --sector Finance Momentum scan of one sector
  stoch-screener --scan oversold --symbols BBCA,TLKM --send
  stoch-screener --list-sectors                   Show sectors and sizes
  stoch-screener --stats                          Signal performance
  stoch-screener                                  Run the fixed-time schedule
        """
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Config file path (default: config.yaml when present)"
    )

    parser.add_argument(
        "--scan",
        choices=[m.value for m in ScanMode],
        help="Run one scan of this mode and exit"
    )

    target = parser.add_mutually_exclusive_group()
    target.add_argument(
        "--sector",
        metavar="NAME",
        help="Limit the scan to one IDX sector"
    )
    target.add_argument(
        "--symbols",
        metavar="LIST",
        help="Comma-separated ticker codes to scan"
    )

    parser.add_argument(
        "--send",
        action="store_true",
        help="Deliver the report to Telegram subscribers"
    )

    parser.add_argument(
        "--cached",
        action="store_true",
        help="Reuse the last report of this mode if it is still fresh"
    )

    parser.add_argument(
        "--list-sectors",
        action="store_true",
        help="List IDX sectors and exit"
    )

    parser.add_argument(
        "--stats",
        action="store_true",
        help="Evaluate recorded signals and show performance"
    )

    return parser


def resolve_symbols(args: argparse.Namespace) -> list[str]:
    """Tickers selected on the command line (all sectors by default)"""
    if args.symbols:
        return [s for s in args.symbols.split(",") if s.strip()]
    if args.sector:
        return get_sector_symbols(args.sector)
    return get_all_symbols()


def run_cli(
    argv: list[str] | None = None,
    *,
    scan_fn: Callable[..., object],
    schedule_fn: Callable[[Config, list[str]], None],
    stats_fn: Callable[[Config], object],
) -> int:
    """
    Parse arguments and dispatch to the matching command.

    Args:
        argv: Command line arguments (None for sys.argv)
        scan_fn: Run one scan: (cfg, symbols, mode, send=, reuse_cached=)
        schedule_fn: Run the fixed-time schedule
        stats_fn: Show signal performance

    Returns:
        Exit code (0 for success, 2 for bad input, 130 on interrupt, 1 otherwise)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.list_sectors:
        console.print(create_sectors_table({name: get_sector_symbols(name) for name in get_sectors()}))
        return 0

    try:
        cfg = Config.load(args.config)

        if args.stats:
            stats_fn(cfg)
            return 0

        symbols = resolve_symbols(args)

        if args.scan:
            scan_fn(cfg, symbols, ScanMode(args.scan), send=args.send, reuse_cached=args.cached)
            return 0

        # Scheduled mode (default)
        schedule_fn(cfg, symbols)
        return 0

    except (ConfigError, ValidationError) as e:
        print_error(e.message)
        return 2

    except KeyboardInterrupt:
        console.print("\n\n👋 Interrupted by user")
        return 130

    except Exception as e:
        logger.exception("fatal_error")
        print_error(f"Fatal error: {e}")
        return 1


def main(argv: list[str] | None = None) -> int:
    """Console script entry point."""
    # Late import keeps argument parsing usable without the runtime wiring
    from . import main as main_module

    return run_cli(
        argv,
        scan_fn=main_module.run_scan_once,
        schedule_fn=main_module.run_scheduled,
        stats_fn=main_module.show_stats,
    )
