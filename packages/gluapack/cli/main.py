"""Command-line interface for gluapack."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from gluapack.core.config import dump_config, load_pack_config
from gluapack.core.consts import SCRIPT_ROOT_NAME, TOOL_VERSION
from gluapack.core.errors import GluapackError
from gluapack.core.models import RunStatistics
from gluapack.core.packing.packer import pack
from gluapack.core.unpacking.unpacker import unpack
from gluapack.core.utils.logging import configure_logging

console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)

EXIT_ERROR = 2


class CliError(Exception):
    """Invalid command-line usage detected after argument parsing."""


def resolve_addon_path(path: str) -> Path:
    """Resolve the addon argument, which must contain a ``lua/`` folder."""
    addon = Path(path)
    if not (addon / SCRIPT_ROOT_NAME).is_dir():
        raise CliError("Couldn't find an addon at this path containing a lua/ folder.")
    return addon.resolve()


def resolve_out_path(
    addon: Path, out: str | None, in_place: bool, suffix_to: str, suffix_from: str
) -> Path | None:
    """Work out the output directory of a run.

    Relative ``--out`` paths resolve against the addon's parent. Without
    ``--out`` the output is a sibling named ``<addon>-<suffix_to>`` (with a
    trailing ``-<suffix_from>`` removed from the addon name first).

    Returns:
        Output directory, or None for in-place runs
    """
    if in_place:
        return None

    if out is not None:
        out_dir = Path(out)
        if not out_dir.is_absolute():
            out_dir = addon.parent / out_dir
    else:
        name = addon.name.removesuffix(f"-{suffix_from}")
        out_dir = addon.parent / f"{name}-{suffix_to}"

    if out_dir.resolve() == addon:
        raise CliError("Output directory cannot be the same as the addon directory!")
    return out_dir


def _print_paths(addon: Path, out_dir: Path | None) -> None:
    console.print(f"Addon Path: {addon}", markup=False, soft_wrap=True)
    console.print(f"Output Path: {out_dir or 'In-place'}", markup=False, soft_wrap=True)


def _print_stats(verb: str, stats: RunStatistics) -> None:
    console.print()
    console.print(f"[bold green]{verb} successfully![/bold green]")
    console.print(stats.files(), markup=False)
    console.print(stats.size(), markup=False)
    console.print(f"Took {stats.elapsed()}", markup=False)


def run_pack(args: argparse.Namespace) -> int:
    """Pack an addon; returns the exit code."""
    addon = resolve_addon_path(args.path)
    out_dir = resolve_out_path(addon, args.out, args.in_place, "packed", "unpacked")

    if not args.quiet:
        _print_paths(addon, out_dir)

    stats = asyncio.run(pack(addon, out_dir=out_dir, no_copy=args.no_copy))
    if not args.quiet:
        _print_stats("PACKED", stats)
    return 0


def run_unpack(args: argparse.Namespace) -> int:
    """Unpack an addon; returns the exit code."""
    addon = resolve_addon_path(args.path)
    out_dir = resolve_out_path(addon, args.out, args.in_place, "unpacked", "packed")

    if not args.quiet:
        _print_paths(addon, out_dir)

    stats = asyncio.run(unpack(addon, out_dir=out_dir, no_copy=args.no_copy))
    if not args.quiet:
        _print_stats("UNPACKED", stats)
    return 0


def run_config(args: argparse.Namespace) -> int:
    """Print the effective configuration of an addon."""
    addon = resolve_addon_path(args.path)
    console.print(
        dump_config(load_pack_config(addon)), markup=False, highlight=False, soft_wrap=True
    )
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for CLI."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("path", help="Path to addon root (directory containing lua/ folder)")
    common.add_argument(
        "-q", "--quiet", action="store_true", help="Only print warnings and errors"
    )
    common.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: INFO, or WARNING with --quiet)",
    )
    common.add_argument(
        "--structured-logs", action="store_true", help="Emit logs as JSON lines"
    )

    run = argparse.ArgumentParser(add_help=False, parents=[common])
    modes = run.add_mutually_exclusive_group()
    modes.add_argument(
        "-m",
        "--in-place",
        action="store_true",
        help="Modify the addon in-place, rather than creating a copy of the addon",
    )
    modes.add_argument(
        "-c",
        "--no-copy",
        action="store_true",
        help="Do not create a copy of the addon in the output directory",
    )
    run.add_argument(
        "-o",
        "--out",
        default=None,
        help="Output directory. Relative to the addon's parent directory; can be absolute.",
    )

    p = argparse.ArgumentParser(
        prog="gluapack",
        description="Packs hundreds of Lua files into just a handful",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {TOOL_VERSION}")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("pack", parents=[run], help="Pack an addon")
    sub.add_parser("unpack", parents=[run], help="Unpack an addon")
    sub.add_parser("config", parents=[common], help="Print an addon's effective configuration")

    return p


_COMMANDS = {
    "pack": run_pack,
    "unpack": run_unpack,
    "config": run_config,
}


def main(argv: list[str] | None = None) -> None:
    """Main entry point for CLI."""
    p = build_arg_parser()
    args = p.parse_args(argv)

    level = args.log_level or ("WARNING" if args.quiet else "INFO")
    try:
        configure_logging(level=level, structured=args.structured_logs)
    except ValueError as e:
        p.error(str(e))

    try:
        exit_code = _COMMANDS[args.cmd](args)
    except (CliError, GluapackError) as e:
        logger.debug("Command %s failed", args.cmd, exc_info=True)
        err_console.print(f"[red]ERROR:[/red] {escape(str(e))}", soft_wrap=True)
        exit_code = EXIT_ERROR
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
