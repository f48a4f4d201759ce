"""
Appearance Keeper - Main Entry Point

Runs the sync engine on a Qt event loop until interrupted, or performs a
one-shot ``--status`` / ``--toggle`` and exits.
"""
import argparse
import json
import signal
import sys
from pathlib import Path
from typing import List, Optional

from PySide6.QtCore import QCoreApplication, QTimer

from core.logging.logger import get_logger, setup_logging
from core.settings.providers import (
    GSettingsStoreProvider,
    QSettingsStoreProvider,
    StoreOpener,
    default_config_dir,
)
from core.shortcuts.registry import ShortcutRegistry
from core.utils.decorators import log_errors
from engine.config import EngineConfig
from engine.errors import EngineStartError
from engine.sync_engine import SyncEngine
from versioning import APP_DESCRIPTION, APP_ID, APP_NAME, APP_VERSION

logger = get_logger(__name__)

# Python only sees SIGINT/SIGTERM when control returns to the interpreter
_SIGNAL_POLL_MS = 250


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=APP_ID, description=APP_DESCRIPTION)
    parser.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log old and new values of every store write (implies --debug)")
    parser.add_argument(
        "--backend",
        choices=("gsettings", "qsettings"),
        default="gsettings",
        help="Settings backend: the live GNOME desktop, or INI files for testing",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Directory for the qsettings backend (default: ~/.config/appearance-keeper)",
    )
    parser.add_argument("--no-live-edit", action="store_true",
                        help="Do not mirror private-store edits for the active mode immediately")
    action = parser.add_mutually_exclusive_group()
    action.add_argument("--status", action="store_true", help="Print stored settings per mode and exit")
    action.add_argument("--toggle", action="store_true", help="Flip between light and dark mode and exit")
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")
    return parser


def build_store_opener(backend: str, config_dir: Optional[Path] = None) -> StoreOpener:
    if backend == "qsettings":
        return QSettingsStoreProvider(config_dir or default_config_dir())
    return GSettingsStoreProvider()


def build_toggle_command(args: argparse.Namespace) -> List[str]:
    """Command line the desktop keybinding runs to flip the mode."""
    command = [APP_ID, "--toggle"]
    if args.backend != "gsettings":
        command += ["--backend", args.backend]
        if args.config_dir is not None:
            command += ["--config-dir", str(Path(args.config_dir).expanduser().resolve())]
    return command


def print_status(engine: SyncEngine) -> None:
    status = {"mode": engine.current_mode().value}
    status.update(engine.snapshot())
    print(json.dumps(status, indent=2))


def run_daemon(app: QCoreApplication, engine: SyncEngine) -> int:
    """Run until SIGINT/SIGTERM or the application quits."""
    app.aboutToQuit.connect(engine.stop)

    def _request_quit(signum, _frame):
        logger.info("Received signal %s, shutting down", signum)
        app.quit()

    signal.signal(signal.SIGINT, _request_quit)
    signal.signal(signal.SIGTERM, _request_quit)

    poll = QTimer()
    poll.timeout.connect(lambda: None)
    poll.start(_SIGNAL_POLL_MS)

    logger.info("Watching for appearance changes")
    try:
        return app.exec()
    finally:
        poll.stop()
        engine.stop()


@log_errors(logger, "Fatal error in {func_name}", reraise=False, return_value=1)
def run(args: argparse.Namespace, app: QCoreApplication) -> int:
    config = EngineConfig(live_edit=not args.no_live_edit)
    engine = SyncEngine(
        build_store_opener(args.backend, args.config_dir),
        config=config,
        shortcuts=ShortcutRegistry(),
        # One-shot runs leave the desktop keybinding alone
        toggle_command=None if (args.status or args.toggle) else build_toggle_command(args),
    )

    try:
        engine.start()
    except EngineStartError as e:
        logger.error("%s", e)
        return 2

    if args.status:
        try:
            print_status(engine)
        finally:
            engine.stop()
        return 0

    if args.toggle:
        try:
            # The color-scheme write notifies the engine, which applies the theme
            if engine.toggle_mode() is None:
                return 1
        finally:
            engine.stop()
        return 0

    return run_daemon(app, engine)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for Appearance Keeper."""
    args = _build_parser().parse_args(argv)
    setup_logging(debug=args.debug, verbose=args.verbose)

    logger.info("%s %s starting (backend=%s)", APP_NAME, APP_VERSION, args.backend)

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    app.setApplicationName(APP_ID)
    app.setApplicationVersion(APP_VERSION)

    exit_code = run(args, app)

    logger.info("%s exiting (code=%s)", APP_NAME, exit_code)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
