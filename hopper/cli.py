#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from hopper.build import (
    DEFAULT_COM_MOJANG_PATH,
    BuildOptions,
    ComMojangPath,
    OutPath,
    OutTarget,
    build,
    clean,
    resolve_env_placeholders,
)
from hopper.errors import HopperError


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="hopper",
        description="Addon preprocessor: compose components into behavior/resource packs.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser("build", help="Build a project.")
    build_parser.add_argument("name", help="The name of the project.")
    target = build_parser.add_mutually_exclusive_group(required=True)
    target.add_argument(
        "-m",
        "--com-mojang",
        nargs="?",
        const=DEFAULT_COM_MOJANG_PATH,
        default=None,
        help=(
            "Output to the development pack folders of a com.mojang directory. "
            f"Defaults to '{DEFAULT_COM_MOJANG_PATH}' when no path is given."
        ),
    )
    target.add_argument("-o", "--out", default=None, help="Output directory path.")
    build_parser.add_argument(
        "--no-rp",
        dest="include_rp",
        action="store_false",
        help="Do not include a resource pack.",
    )
    build_parser.add_argument(
        "-O",
        "--optimize",
        action="store_true",
        help="Minify the output script bundle.",
    )
    build_parser.add_argument("--entry", default="src/main.py", help="Path to the entry file.")
    build_parser.add_argument("--assets", default="assets", help="Path to the assets directory.")

    clean_parser = subparsers.add_parser(
        "clean", help="Remove a project from the com.mojang directory."
    )
    clean_parser.add_argument("name", help="The name of the project.")
    clean_parser.add_argument(
        "path",
        nargs="?",
        default=DEFAULT_COM_MOJANG_PATH,
        help="The path to the com.mojang directory.",
    )
    return parser.parse_args(argv)


def _out_target(args: argparse.Namespace) -> OutTarget:
    if args.out is not None:
        return OutPath(Path(resolve_env_placeholders(args.out)))
    return ComMojangPath(Path(resolve_env_placeholders(args.com_mojang)))


def _run_build(args: argparse.Namespace) -> None:
    result = build(
        BuildOptions(
            name=args.name,
            entry_path=Path(args.entry),
            assets_path=Path(args.assets),
            out=_out_target(args),
            include_rp=args.include_rp,
            optimize=args.optimize,
        )
    )
    print(f"Built {args.name}")
    print(f"- {result.out_dirs.bp}")
    if args.include_rp:
        print(f"- {result.out_dirs.rp}")
    print(f"- {result.bundle_path} ({len(result.artifacts)} generated files)")


def _run_clean(args: argparse.Namespace) -> None:
    removed = clean(args.name, resolve_env_placeholders(args.path))
    if not removed:
        print(f"Nothing to clean for {args.name}")
    for directory in removed:
        print(f"Removed {directory}")


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    try:
        if args.command == "build":
            _run_build(args)
        else:
            _run_clean(args)
    except HopperError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
