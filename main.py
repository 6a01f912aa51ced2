"""Command-line entry point for the camera proximity detector."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
import sys

from config import ConfigController
from core.errors import ProximityError
from core.logging import enable_file_logging, logger, set_level
from interaction import ConsolePresenter
from services.proximity_detector import ProximityDetector, load_proximity_config


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Raw command-line arguments.

    Returns:
        Parsed arguments namespace.
    """

    parser = argparse.ArgumentParser(
        description="Detect objects approaching the camera from centre brightness."
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Directory holding default.yaml and optional override.yaml.",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Stop detection after this many seconds.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print a status line on every tick.",
    )
    parser.add_argument(
        "--diagnostics",
        action="store_true",
        help="Run diagnostics probes and exit.",
    )
    return parser.parse_args(argv)


def run_diagnostics_report(base_dir: Path | None) -> int:
    from config.diagnostics import probe as config_probe
    from diagnostics.runner import format_results, has_failures, run_diagnostics
    from hardware.diagnostics import probe as hardware_probe

    def config_probe_with_base():
        return config_probe(base_dir=base_dir)

    results = run_diagnostics([config_probe_with_base, hardware_probe])
    print(format_results(results))
    return 1 if has_failures(results) else 0


async def run_session(detector: ProximityDetector, duration_s: float | None) -> int:
    """Run one detection session until it stops, times out or is cancelled."""

    try:
        await detector.start()
    except ProximityError:
        return 1

    try:
        if duration_s is not None:
            await asyncio.sleep(duration_s)
        else:
            while detector.is_running:
                await asyncio.sleep(0.25)
    finally:
        detector.stop()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Application entry point.

    Args:
        argv: Optional list of command-line arguments.

    Returns:
        Process exit code.
    """

    if argv is None:
        argv = sys.argv[1:]
    args = parse_args(argv)

    if args.config_dir is not None:
        ConfigController._instance = ConfigController(config_dir=args.config_dir)
    config = ConfigController.get_instance().get_config()
    set_level(config.get("logging_level", "INFO"))

    if args.diagnostics:
        base_dir = args.config_dir.parent if args.config_dir is not None else None
        return run_diagnostics_report(base_dir)

    if config.get("file_logging_enabled", False):
        log_file_path = Path(config.get("log_file", "logs/proximity.log"))
        enable_file_logging(log_file_path)
        logger.info("Writing logs to %s", log_file_path)

    try:
        proximity_config = load_proximity_config()
    except (TypeError, ValueError) as exc:
        logger.error("Invalid proximity configuration: %s", exc)
        return 2

    presenter = ConsolePresenter(verbose=args.verbose)
    detector = ProximityDetector(
        proximity_config,
        on_tick=presenter.on_tick,
        on_lifecycle=presenter.on_lifecycle,
    )

    try:
        exit_code = asyncio.run(run_session(detector, args.duration))
    except KeyboardInterrupt:
        logger.info("Program terminated by user")
        return 0

    if presenter.last_error is not None:
        return 1
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
