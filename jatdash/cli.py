"""CLI entry point for inspecting captured agent output.

Usage:
    tmux capture-pane -p -e -t jat-Agent -S -200 | jatdash-markers
    jatdash-markers session.log --lines 200 --has-task
    python -m jatdash session.log --json
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from rich.console import Console

from .config import MarkerConfig, load_yaml_config
from .display import render_parse_result
from .markers import ConfigError, determine_session_state, parse_all_markers
from .markers.normalize import recent_output

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jatdash-markers",
        description="Derive an agent session's state from its terminal output",
    )
    parser.add_argument(
        "file",
        nargs="?",
        default=None,
        help="Captured output file (default: read stdin)",
    )
    parser.add_argument(
        "--lines", "-n",
        type=int,
        default=None,
        help="Trailing lines to parse (default: from config, 50)",
    )
    parser.add_argument(
        "--has-task",
        action="store_true",
        help="A task is assigned to the session (no markers -> starting)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the parse result as JSON",
    )
    parser.add_argument(
        "--strip-ansi",
        action="store_true",
        help="Strip ANSI escape codes before scanning",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="YAML settings file (default: ~/.config/jat/dashboard.yaml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    # Config loading logs too; the configured level is applied once it is known.
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = _resolve_config(args)
    except (ConfigError, FileNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    if not args.verbose:
        logging.getLogger().setLevel(config.log_level)

    try:
        output = _read_output(args.file)
    except OSError as exc:
        print(f"Error: Cannot read {args.file}: {exc}", file=sys.stderr)
        return 2

    window = recent_output(
        output, config.capture_lines, strip_ansi_codes=config.strip_ansi
    )
    markers = parse_all_markers(window)
    state = determine_session_state(markers, has_task=args.has_task)
    logger.debug(
        "Parsed %d chars (%d in window): state=%s markers=%d",
        len(output), len(window), state.value, len(markers.markers()),
    )

    if config.output_format == "json":
        payload = {"state": state.value, **markers.to_dict()}
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        Console().print(render_parse_result(markers, state))
    return 0


def _resolve_config(args: argparse.Namespace) -> MarkerConfig:
    config = load_yaml_config(args.config)
    if args.lines is not None:
        config.capture_lines = args.lines
    if args.strip_ansi:
        config.strip_ansi = True
    if args.json:
        config.output_format = "json"
    config.validate()
    return config


def _read_output(file_path: str | None) -> str:
    if file_path is None or file_path == "-":
        return sys.stdin.buffer.read().decode("utf-8", errors="replace")
    return Path(file_path).read_text(encoding="utf-8", errors="replace")


if __name__ == "__main__":
    sys.exit(main())
