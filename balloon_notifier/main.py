"""
Entry point for the balloon tip notifier.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from balloon_notifier.settings import NotifierSettingsManager, clamp_timeout_ms
from balloon_notifier.tray_notifier import TrayBalloonNotifier
from script_helpers.config_store import ConfigurationStore
from script_helpers.defaults import DEFAULT_CONFIG_PATH
from script_helpers.error_handling import NO_RESULT, run_with_policy
from script_helpers.errors import ConfigIOError, LogIOError
from script_helpers.logger import get_logger, initialize_logging_from_configuration
from shared.balloon_tip import BalloonTip, BalloonTipError, IconKind

OPERATION_NAME = "ShowBalloonTip"

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="balloon-tip",
        description="Show a system tray balloon tip (deprecated; prefer toast notifications).",
    )
    parser.add_argument("--message", "-m", required=True, help="Body text of the balloon tip.")
    parser.add_argument("--title", "-t", help="Balloon title. Defaults to the configured title.")
    parser.add_argument(
        "--icon",
        "-i",
        choices=[kind.value for kind in IconKind],
        help="Icon shown next to the title. Defaults to the configured icon.",
    )
    parser.add_argument("--timeout-ms", type=int, help="How long the tip stays visible, in milliseconds.")
    parser.add_argument("--config", type=Path, help=f"Configuration file (default: {DEFAULT_CONFIG_PATH}).")
    parser.add_argument("--no-console", action="store_true", help="Only write to the log file.")
    return parser


def main(argv: Optional[Sequence[str]] = None, *, notifier=None) -> int:
    """Show one balloon tip and report whether it was displayed."""
    args = build_parser().parse_args(argv)
    store = ConfigurationStore(args.config or DEFAULT_CONFIG_PATH)

    try:
        config = store.initialize()
        script_logger = initialize_logging_from_configuration(
            config,
            console_output=False if args.no_console else None,
        )
    except (ConfigIOError, LogIOError) as exc:
        get_logger().error("Unable to prepare balloon tip: {}", exc)
        return EXIT_FAILED

    settings = NotifierSettingsManager(store=store).read_settings()
    try:
        tip = BalloonTip.create(
            title=args.title or settings.title,
            message=args.message,
            icon_kind=args.icon or settings.icon_kind,
            timeout_ms=(
                clamp_timeout_ms(args.timeout_ms, source="--timeout-ms")
                if args.timeout_ms is not None
                else settings.timeout_ms
            ),
        )
    except BalloonTipError as exc:
        script_logger.error(f"Invalid balloon tip: {exc}")
        return EXIT_INVALID

    notifier = notifier or TrayBalloonNotifier(logger=script_logger)
    policy = replace(settings.retry_policy, continue_on_error=True)
    result = run_with_policy(policy, lambda: notifier.show(tip), OPERATION_NAME, logger=script_logger)
    if result is NO_RESULT:
        return EXIT_FAILED
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
