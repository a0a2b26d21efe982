from __future__ import annotations

import argparse
import datetime as dt
import os
import shlex
import shutil
import subprocess
import sys
import time
from pathlib import Path
from typing import Optional

from .builder import create_fragment, publish_post, rebuild_all
from .config import SiteConfig, read_site_config
from .content import parse_list
from .errors import SiteError
from .utils import file_timestamp

KNOWN_EDITORS = (
    ("code", "code --wait"),
    ("geany", "geany -i"),
    ("hx", "hx"),
    ("nano", "nano"),
    ("vim", "vim"),
    ("vi", "vi"),
)


def find_editor(config: SiteConfig) -> Optional[str]:
    for value in (config.editor, os.environ.get("VISUAL", ""), os.environ.get("EDITOR", "")):
        if value.strip():
            return value.strip()
    for program, command in KNOWN_EDITORS:
        if shutil.which(program):
            return command
    return None


def resolve_fragment(root: Path, value: str) -> Path:
    path = Path(value)
    if not path.is_absolute():
        path = root / path
    return path


def parse_timestamp(value: str) -> dt.datetime:
    try:
        return dt.datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid ISO timestamp: {value}")


def cmd_rebuild(args: argparse.Namespace, config: SiteConfig) -> bool:
    report = rebuild_all(args.root, config)
    print(report.summary())
    for message in report.errors:
        print(f"  - {message}", file=sys.stderr)
    return report.ok


def cmd_post(args: argparse.Namespace, config: SiteConfig) -> bool:
    fragment = resolve_fragment(args.root, args.path)
    report = publish_post(fragment, args.root, config, timestamp=args.timestamp)
    print(report.summary())
    return report.ok


def cmd_edit(args: argparse.Namespace, config: SiteConfig) -> bool:
    fragment = resolve_fragment(args.root, args.path)
    if not fragment.is_file():
        print(f"Fragment not found: {fragment}", file=sys.stderr)
        return False
    editor = find_editor(config)
    if editor is None:
        print("No editor found. Set 'editor' in the config or $EDITOR.", file=sys.stderr)
        return False
    original = file_timestamp(fragment)
    result = subprocess.run(shlex.split(editor) + [str(fragment)], check=False)
    if result.returncode != 0:
        print(f"Editor exited with status {result.returncode}; post not rebuilt.", file=sys.stderr)
        return False
    report = publish_post(fragment, args.root, config, timestamp=None if args.touch else original)
    print(report.summary())
    return report.ok


def cmd_new(args: argparse.Namespace, config: SiteConfig) -> bool:
    fragment = resolve_fragment(args.root, args.path)
    try:
        created = create_fragment(args.root, fragment, args.title, parse_list(args.tags))
    except (SiteError, FileExistsError) as exc:
        print(str(exc), file=sys.stderr)
        return False
    print(f"Created {created}")
    return True


def build_parser(default_config: str = "site.toml") -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Build a static site from .htmraw fragments.")
    parser.add_argument("--config", default=default_config, help="Path to site config file (TOML/YAML/JSON).")
    parser.add_argument("--root", default=".", type=Path, help="Content root holding cms_config/ and fragments.")
    commands = parser.add_subparsers(dest="command", required=True)

    rebuild = commands.add_parser("rebuild", help="Rebuild every post and all index pages.")
    rebuild.set_defaults(handler=cmd_rebuild)

    post = commands.add_parser("post", help="Build one post and refresh the index pages.")
    post.add_argument("path", help="Fragment path, relative to the content root.")
    post.add_argument(
        "--timestamp",
        type=parse_timestamp,
        default=None,
        help="ISO date/time to set as the post's modification time.",
    )
    post.set_defaults(handler=cmd_post)

    edit = commands.add_parser("edit", help="Open a fragment in an editor, then rebuild it.")
    edit.add_argument("path", help="Fragment path, relative to the content root.")
    edit.add_argument(
        "--touch",
        action="store_true",
        help="Keep the new modification time instead of restoring the original one.",
    )
    edit.set_defaults(handler=cmd_edit)

    new = commands.add_parser("new", help="Create a fragment from cms_skeleton.txt.")
    new.add_argument("path", help="Fragment path, relative to the content root.")
    new.add_argument("--title", default="Untitled Post", help="Post title.")
    new.add_argument("--tags", default="", help="Comma separated tags.")
    new.set_defaults(handler=cmd_new)
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    config = read_site_config(Path(args.config))
    start = time.perf_counter()
    ok = args.handler(args, config)
    elapsed = time.perf_counter() - start
    print(f"Completed in {elapsed:.2f}s.")
    if not ok:
        sys.exit(1)
