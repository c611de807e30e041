from __future__ import annotations

import argparse
import os
from pathlib import Path
import sys

from mybackup.config import BackupConfig, load_config
from mybackup.dispatcher import BackupDispatcher
from mybackup.ignore_engine import build_ignore_engine
from mybackup.manifest import ManifestError
from mybackup.mirror_engine import Mirror
from mybackup.reporter import LoggingReporter, configure_logging, log_file_path


EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_INVALID_CONFIG = 3


def usage_message(prog: str) -> str:
    return (
        f"usage: {prog} <input file> <target folder>\n"
        " input file: path to file which holds on each line the file or folders to be recursively backed up\n"
    )


def _build_parser(prog: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Concurrently back up the files and folders listed in a manifest",
    )
    parser.add_argument("manifest", nargs="?", help="File listing one file or folder per line")
    parser.add_argument("target", nargs="?", help="Folder the backup is written into")
    parser.add_argument("--config", type=Path, help="Optional .yaml/.yml or .json settings file")
    parser.add_argument("--max-workers", type=int, help="Cap on concurrently running top-level copies")
    parser.add_argument(
        "--strict-containment",
        action="store_true",
        help="Skip only sources that are the target or a path below it",
    )
    parser.add_argument("--console", action="store_true", help="Also write progress to stderr")
    parser.add_argument("--no-log-file", action="store_true", help="Do not write a log file")
    return parser


def _resolve_log_file(config: BackupConfig, target: str) -> Path | None:
    if not config.log_to_file:
        return None
    log_dir = config.log_dir or Path(target)
    return log_file_path(log_dir, config.log_file_prefix)


def cmd_backup(manifest_path: Path, target: str, config: BackupConfig) -> int:
    try:
        os.makedirs(target, mode=0o777, exist_ok=True)
    except OSError as exc:
        print(f"Cannot create target folder {target}: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        logger = configure_logging(_resolve_log_file(config, target), console=config.console)
    except OSError as exc:
        print(f"Cannot create log file: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    reporter = LoggingReporter(logger)
    mirror = Mirror(
        reporter,
        containment=config.containment,
        ignore_engine=build_ignore_engine(config.excludes),
    )
    dispatcher = BackupDispatcher(mirror, reporter, max_workers=config.max_workers)

    try:
        summary = dispatcher.run(manifest_path, target)
    except ManifestError as exc:
        logger.error("%s", exc)
        print(str(exc), file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    logger.info(
        "entries=%s copied=%s folders=%s skipped=%s excluded=%s failed=%s",
        summary.tasks_launched,
        summary.copied,
        summary.folders,
        summary.skipped,
        summary.excluded,
        summary.failed,
    )
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    prog = os.path.basename(sys.argv[0]) or "mybackup"
    parser = _build_parser(prog)
    args = parser.parse_args(argv)

    if args.manifest is None or args.target is None:
        print(usage_message(prog), end="")
        return EXIT_SUCCESS

    try:
        config = load_config(args.config).with_overrides(
            max_workers=args.max_workers,
            strict_containment=args.strict_containment,
            console=args.console,
            no_log_file=args.no_log_file,
        )
    except Exception as exc:
        print(f"Invalid config: {exc}", file=sys.stderr)
        return EXIT_INVALID_CONFIG

    return cmd_backup(Path(args.manifest), args.target, config)


if __name__ == "__main__":
    raise SystemExit(main())
