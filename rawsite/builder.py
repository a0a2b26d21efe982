from __future__ import annotations

import datetime as dt
import html
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .config import SiteConfig
from .content import FRAGMENT_SUFFIX, TITLE_RE, replace_tags_comment
from .errors import SiteError
from .pages import build_archive, build_main_index, build_post, build_tag_index, discover_fragments
from .render import TEMPLATES_DIRNAME, TEMPLATE_FILES, canonical, load_template, write_text
from .utils import set_file_timestamp

BODY_OPEN_RE = re.compile(r"<body(?:\s[^>]*)?>", re.IGNORECASE)


@dataclass
class BuildReport:
    fragments_found: int = 0
    fragments_processed: int = 0
    pages_generated: int = 0
    errors: list[str] = field(default_factory=list)
    indexes: dict[str, bool] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        return (
            f"Fragments found: {self.fragments_found}, processed: {self.fragments_processed}, "
            f"pages generated: {self.pages_generated}, errors: {len(self.errors)}"
        )


def rebuild_indexes(content_root: Path, config: SiteConfig, report: BuildReport) -> None:
    for name, builder in (
        ("index.html", build_main_index),
        ("all_posts.html", build_archive),
    ):
        built = builder(content_root, config)
        report.indexes[name] = built
        if not built:
            report.errors.append(f"{name} not built")
    failed_tags: list[str] = []
    built = build_tag_index(content_root, config, failed=failed_tags)
    report.indexes["all_tags.html"] = built
    if not built:
        report.errors.append("all_tags.html not built")
    report.errors.extend(f"{name} not built" for name in failed_tags)


def rebuild_all(content_root: Path, config: SiteConfig) -> BuildReport:
    report = BuildReport()
    try:
        content_root = canonical(content_root)
        fragments = discover_fragments(content_root)
    except SiteError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        report.errors.append(str(exc))
        return report

    report.fragments_found = len(fragments)
    for fragment_path in fragments:
        report.fragments_processed += 1
        if build_post(fragment_path, content_root, config):
            report.pages_generated += 1
            print(f"  {fragment_path.relative_to(content_root).as_posix()}")
        else:
            report.errors.append(f"{fragment_path} not built")

    rebuild_indexes(content_root, config, report)
    return report


def publish_post(
    fragment_path: Path,
    content_root: Path,
    config: SiteConfig,
    timestamp: Optional[dt.datetime] = None,
) -> BuildReport:
    report = BuildReport(fragments_found=1, fragments_processed=1)
    try:
        content_root = canonical(content_root)
        fragment_path = canonical(fragment_path)
    except SiteError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        report.errors.append(str(exc))
        return report
    if not fragment_path.is_file():
        message = f"Fragment not found: {fragment_path}"
        print(f"Error: {message}", file=sys.stderr)
        report.errors.append(message)
        return report
    if timestamp is not None:
        set_file_timestamp(fragment_path, timestamp)
    if build_post(fragment_path, content_root, config):
        report.pages_generated = 1
    else:
        report.errors.append(f"{fragment_path} not built")
    rebuild_indexes(content_root, config, report)
    return report


def fill_skeleton(skeleton: str, title: str, tags: list[str]) -> str:
    heading = f"<h1>{html.escape(title)}</h1>"
    if TITLE_RE.search(skeleton):
        text = TITLE_RE.sub(lambda _: heading, skeleton, count=1)
    else:
        match = BODY_OPEN_RE.search(skeleton)
        if match:
            text = f"{skeleton[:match.end()]}\n{heading}{skeleton[match.end():]}"
        else:
            text = f"<body>\n{heading}\n{skeleton}\n</body>\n"
    return replace_tags_comment(text, tags)


def create_fragment(content_root: Path, fragment_path: Path, title: str, tags: list[str]) -> Path:
    content_root = canonical(content_root)
    fragment_path = canonical(fragment_path)
    if fragment_path.suffix != FRAGMENT_SUFFIX:
        fragment_path = fragment_path.with_suffix(FRAGMENT_SUFFIX)
    if fragment_path.exists():
        raise FileExistsError(f"Fragment already exists: {fragment_path}")
    skeleton = load_template(content_root / TEMPLATES_DIRNAME / TEMPLATE_FILES["skeleton"])
    write_text(fragment_path, fill_skeleton(skeleton, title, tags))
    return fragment_path
