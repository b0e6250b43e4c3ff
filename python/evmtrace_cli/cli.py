"""evmtrace CLI entry point."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import List

from .commands import CommandRegistry, build_registry
from .context import ViewerContext
from .parser import CommandParseError, split_command
from .repl import ViewerREPL

LOG = logging.getLogger("evmtrace_cli.cli")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _env_port(default: int = 8080) -> int:
    raw = os.environ.get("EVMTRACE_PORT", "")
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Live echoevm execution-trace viewer")
    parser.add_argument("--host", default=os.environ.get("EVMTRACE_HOST", "127.0.0.1"), help="Trace server host")
    parser.add_argument("--port", type=int, default=_env_port(), help="Trace server port (default 8080)")
    parser.add_argument("--path", default="/ws", help="Websocket path (default /ws)")
    parser.add_argument(
        "--reconnect-delay",
        type=float,
        default=2.0,
        help="Seconds to wait before reconnecting after a drop (default 2.0)",
    )
    parser.add_argument("--json", action="store_true", help="Emit JSON output when supported")
    parser.add_argument(
        "--log-level",
        default=os.environ.get("EVMTRACE_LOG", "INFO"),
        help="Logging level (default INFO)",
    )
    parser.add_argument(
        "-c",
        "--command",
        help="Execute a single command non-interactively (quote the command string)",
    )
    parser.add_argument(
        "--no-follow",
        action="store_true",
        help="Do not print trace entries as they arrive",
    )
    return parser


def main(argv: List[str] | None = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)
    ctx = ViewerContext(
        host=args.host,
        port=args.port,
        path=args.path,
        reconnect_delay=args.reconnect_delay,
        json_output=args.json,
        follow=not args.no_follow,
    )
    registry = build_registry()
    if args.command:
        try:
            return _run_single_command(ctx, registry, args.command)
        finally:
            ctx.disconnect()
    repl = ViewerREPL(ctx, registry)
    try:
        return repl.run()
    except KeyboardInterrupt:
        print()
        return 0
    finally:
        ctx.disconnect()


def _run_single_command(ctx: ViewerContext, registry: CommandRegistry, command_line: str) -> int:
    try:
        argv = split_command(command_line)
    except CommandParseError as exc:
        print(f"Parse error: {exc}")
        return 1
    if not argv:
        return 0
    cmd_name, *cmd_args = argv
    command = registry.get(cmd_name)
    if not command:
        print(f"Unknown command: {cmd_name}")
        return 1
    try:
        return command.run(ctx, cmd_args)
    except SystemExit as exc:
        return int(exc.code or 0)
    except Exception as exc:  # pragma: no cover - defensive
        LOG.exception("command failed")
        print(f"Command '{cmd_name}' failed: {exc}")
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
