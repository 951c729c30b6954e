"""
SettleWatch Application Entry Point.

Watches the source directories and converts every new stable file.
Requires Python 3.11+.

Usage:
    settlewatch /path/to/incoming --dest-dir /path/to/converted
"""

import argparse
import signal
import sys
import threading
from pathlib import Path
from types import FrameType

from pydantic import ValidationError

from pipeline.converter import Converter
from pipeline.filters import ExtensionFilter
from pipeline.index import FileIndex
from pipeline.runner import ConversionPipeline
from utils.config import PipelineSettings, Settings, WatcherSettings, get_settings
from utils.logger import configure_logging, get_logger
from watcher.errors import WatchError
from watcher.file_watcher import FileWatcher


logger = get_logger("app")


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        description="Convert files once they have finished being written"
    )
    parser.add_argument(
        "directories",
        nargs="*",
        type=Path,
        help="Directories to watch (default: SOURCE_DIR)",
    )
    parser.add_argument("--dest-dir", type=Path, help="Output directory (default: DEST_DIR)")
    parser.add_argument("--data-dir", type=Path, help="Index directory (default: DATA_DIR)")
    parser.add_argument(
        "--ext",
        action="append",
        dest="extensions",
        help="Allowed extension, repeatable (default: FILE_EXTS)",
    )
    parser.add_argument("--quiescence", type=float, help="Seconds of inactivity before a file is stable")
    parser.add_argument("--poll-interval", type=float, help="Seconds between settle passes")
    parser.add_argument("--log-format", choices=["json", "console"], help="Log output format")
    parser.add_argument("--log-level", help="Log level")
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Return settings with command line overrides applied."""
    pipeline_updates: dict[str, object] = {}
    if args.directories:
        pipeline_updates["source_dir"] = list(args.directories)
    if args.dest_dir is not None:
        pipeline_updates["dest_dir"] = args.dest_dir
    if args.data_dir is not None:
        pipeline_updates["data_dir"] = args.data_dir
    if args.extensions:
        pipeline_updates["file_exts"] = list(args.extensions)

    watcher_updates: dict[str, object] = {}
    if args.quiescence is not None:
        watcher_updates["quiescence_seconds"] = args.quiescence
    if args.poll_interval is not None:
        watcher_updates["poll_interval_seconds"] = args.poll_interval

    # Re-validate so overrides get the same bounds as env values
    return settings.model_copy(
        update={
            "pipeline": PipelineSettings.model_validate(
                {**settings.pipeline.model_dump(), **pipeline_updates}
            ),
            "watcher": WatcherSettings.model_validate(
                {**settings.watcher.model_dump(), **watcher_updates}
            ),
        }
    )


def run(settings: Settings) -> int:
    """
    Run the watcher and pipeline until a termination signal.

    Returns:
        Process exit code
    """
    config = settings.pipeline
    if not config.source_dir:
        logger.error("no_source_directories")
        return 2

    index = FileIndex(config.index_db_path)
    index.initialize()

    pipeline = ConversionPipeline(
        index=index,
        converter=Converter(config.converter_command),
        extension_filter=ExtensionFilter(config.file_exts),
        dest_dir=config.dest_dir,
        dest_suffix=config.dest_suffix,
    )

    watcher = FileWatcher(config.source_dir, settings=settings.watcher)
    subscription = watcher.subscribe()

    stop_requested = threading.Event()

    def _request_stop(signum: int, frame: FrameType | None) -> None:
        logger.info("stop_requested", signal=signal.Signals(signum).name)
        stop_requested.set()

    try:
        watcher.start()
    except WatchError as e:
        logger.error("watcher_start_failed", error=str(e))
        index.close()
        return 1

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)

    worker = threading.Thread(
        target=pipeline.run,
        args=(subscription,),
        name="conversion-pipeline",
    )
    worker.start()

    try:
        stop_requested.wait()
    finally:
        watcher.stop()
        worker.join()
        index.close()

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        settings = apply_overrides(get_settings(), args)
    except ValidationError as e:
        parser.error(str(e))
    configure_logging(level=args.log_level, fmt=args.log_format)
    return run(settings)


if __name__ == "__main__":
    sys.exit(main())
