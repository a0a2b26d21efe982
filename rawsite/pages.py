from __future__ import annotations

import datetime as dt
import html
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import SiteConfig
from .content import (
    FRAGMENT_SUFFIX,
    extract_body,
    output_path_for,
    read_fragment,
    tag_filename,
)
from .errors import ParseSkip, SiteError, UnresolvablePath
from .header import (
    HEADER_SLOTS,
    build_dynamic_header,
    build_history_button,
    build_rss_button,
    build_search_box,
    build_tags_button,
    fill_slots,
    search_enabled,
)
from .render import (
    TEMPLATES_DIRNAME,
    adjust_asset_paths,
    canonical,
    determine_depth,
    inject_title,
    load_templates,
    relative_root,
    strip_tags,
    write_text,
)
from .utils import file_timestamp, month_label

SUMMARY_LENGTH = 300
SUMMARY_PLACEHOLDER = "No summary available yet."
CONTENT_START = "<!--CONTENT_START-->"
CONTENT_END = "<!--CONTENT_END-->"
HR_RE = re.compile(r"<hr\b[^>]*>", re.IGNORECASE)
WHITESPACE_RE = re.compile(r"\s+")

PAGE_CONTROLS = {
    "post": ("history", "tags", "rss", "search"),
    "index": ("history", "tags", "rss", "search"),
    "all_posts": ("tags", "rss", "search"),
    "all_tags": ("history", "rss", "search"),
    "tag": ("history", "tags", "rss", "search"),
}


@dataclass
class PostRecord:
    title: str
    html_path: str
    timestamp: dt.datetime
    tags: tuple[str, ...] = ()
    summary: str = ""


def build_controls(config: SiteConfig, page_type: str, root: str) -> dict[str, str]:
    controls = []
    for control in PAGE_CONTROLS[page_type]:
        if control == "history":
            controls.append(build_history_button(config, root))
        elif control == "tags":
            controls.append(build_tags_button(config, root))
        elif control == "rss":
            controls.append(build_rss_button(config))
        elif control == "search":
            controls.append(build_search_box(config) if search_enabled(config, page_type) else "")
    return dict(zip(HEADER_SLOTS, controls))


def assemble_page(
    page_type: str,
    title: str,
    body: str,
    output_path: Path,
    content_root: Path,
    config: SiteConfig,
) -> str:
    content_root = canonical(content_root)
    templates = load_templates(content_root / TEMPLATES_DIRNAME)
    depth = determine_depth(output_path, content_root)
    header = inject_title(templates.header, title)
    dynamic_header = fill_slots(
        build_dynamic_header(config), build_controls(config, page_type, relative_root(depth))
    )
    html_doc = "".join(
        [
            header,
            dynamic_header,
            templates.begin,
            f"{CONTENT_START}\n{body}\n{CONTENT_END}\n",
            templates.end,
            templates.footer,
        ]
    )
    html_doc = adjust_asset_paths(html_doc, depth)
    write_text(output_path, html_doc)
    return html_doc


def render_post_body(body: str, tags: tuple[str, ...]) -> str:
    if not tags:
        return body
    return f"{body}\n<p>Tags: {', '.join(tags)}</p>"


def build_post(fragment_path: Path, content_root: Path, config: SiteConfig) -> bool:
    try:
        fragment = read_fragment(fragment_path)
        assemble_page(
            "post",
            fragment.title,
            render_post_body(fragment.body, fragment.tags),
            output_path_for(fragment_path),
            content_root,
            config,
        )
    except SiteError as exc:
        print(f"Error: post {fragment_path} not built: {exc}", file=sys.stderr)
        return False
    return True


def discover_fragments(content_root: Path) -> list[Path]:
    root = canonical(content_root)
    if not root.is_dir():
        raise UnresolvablePath(f"Content root not found: {content_root}")
    found = []
    for path in root.rglob(f"*{FRAGMENT_SUFFIX}"):
        if not path.is_file():
            continue
        if TEMPLATES_DIRNAME in path.relative_to(root).parts[:-1]:
            continue
        found.append(path)
    return sorted(found, key=lambda p: p.as_posix())


def extract_summary(html_text: str) -> str:
    start = html_text.find(CONTENT_START)
    end = html_text.find(CONTENT_END, start + 1)
    if start != -1 and end != -1:
        body = html_text[start + len(CONTENT_START) : end]
    else:
        body = extract_body(html_text)
    body = HR_RE.split(body, maxsplit=1)[0]
    text = WHITESPACE_RE.sub(" ", strip_tags(body)).strip()
    if len(text) > SUMMARY_LENGTH:
        return text[:SUMMARY_LENGTH].rstrip() + "..."
    return text


def read_summary(html_path: Path) -> str:
    if not html_path.is_file():
        return SUMMARY_PLACEHOLDER
    try:
        return extract_summary(html_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        print(f"Warning: cannot read {html_path} for its summary: {exc}", file=sys.stderr)
        return SUMMARY_PLACEHOLDER


def sort_posts(posts: list[PostRecord]) -> list[PostRecord]:
    return sorted(posts, key=lambda p: (p.timestamp, p.html_path), reverse=True)


def collect_posts(content_root: Path, with_summary: bool = False) -> list[PostRecord]:
    root = canonical(content_root)
    posts = []
    for path in discover_fragments(root):
        try:
            fragment = read_fragment(path)
            timestamp = file_timestamp(path)
        except ParseSkip as exc:
            print(f"Warning: skipping fragment: {exc}", file=sys.stderr)
            continue
        except OSError as exc:
            print(f"Warning: skipping fragment {path}: {exc}", file=sys.stderr)
            continue
        html_path = output_path_for(path)
        posts.append(
            PostRecord(
                title=fragment.title,
                html_path=html_path.relative_to(root).as_posix(),
                timestamp=timestamp,
                tags=fragment.tags,
                summary=read_summary(html_path) if with_summary else "",
            )
        )
    return sort_posts(posts)


def collect_tags(posts: list[PostRecord]) -> dict[str, list[PostRecord]]:
    tag_map: dict[str, list[PostRecord]] = {}
    for post in posts:
        for tag in post.tags:
            tag = tag.strip()
            if tag:
                tag_map.setdefault(tag, []).append(post)
    return {tag: sort_posts(items) for tag, items in tag_map.items()}


def post_link(post: PostRecord) -> str:
    return f'<a href="{html.escape(post.html_path)}">{post.title}</a>'


def render_index_body(posts: list[PostRecord], config: SiteConfig) -> str:
    if not posts:
        return '<p class="empty">No posts yet.</p>'
    items = []
    for post in posts[: config.index_articles]:
        items.append(
            '<div class="post-entry">'
            f"<h2>{post_link(post)}</h2>"
            f'<p class="post-summary">{post.summary}</p>'
            f'<p class="post-date">{post.timestamp.strftime(config.date_format)}</p>'
            "</div>"
        )
    return "\n<hr>\n".join(items)


def render_archive_body(posts: list[PostRecord], config: SiteConfig) -> str:
    if not posts:
        return '<h1>All Posts</h1>\n<p class="empty">No posts yet.</p>'
    lines = ["<h1>All Posts</h1>"]
    current = None
    for post in posts:
        label = month_label(post.timestamp)
        if label != current:
            if current is not None:
                lines.append("</ul>")
            lines.append(f"<h2>{label}</h2>")
            lines.append('<ul class="archive-list">')
            current = label
        lines.append(f"<li>{post_link(post)} - {post.timestamp.strftime(config.full_date_format)}</li>")
    lines.append("</ul>")
    return "\n".join(lines)


def tag_page_names(tags: list[str]) -> dict[str, str]:
    names: dict[str, str] = {}
    used: set[str] = set()
    for tag in sorted(tags):
        name = tag_filename(tag)
        if name in used:
            stem = name[: -len(".html")]
            counter = 2
            while f"{stem}_{counter}.html" in used:
                counter += 1
            name = f"{stem}_{counter}.html"
            print(f"Warning: tag '{tag}' clashes with another tag's page; writing it to {name}.", file=sys.stderr)
        used.add(name)
        names[tag] = name
    return names


def render_all_tags_body(tag_map: dict[str, list[PostRecord]], names: dict[str, str]) -> str:
    if not tag_map:
        return '<h1>Tags</h1>\n<p class="empty">No tags found.</p>'
    rows = []
    for tag in sorted(tag_map):
        rows.append(
            f'<li><a href="{names[tag]}">{html.escape(tag)} ({len(tag_map[tag])} posts)</a></li>'
        )
    return "<h1>Tags</h1>\n" + '<ul class="tag-list">\n' + "\n".join(rows) + "\n</ul>"


def render_tag_body(tag: str, posts: list[PostRecord], config: SiteConfig) -> str:
    rows = [f"<li>{post_link(post)} - {post.timestamp.strftime(config.date_format)}</li>" for post in posts]
    return (
        f"<h1>Tag: {html.escape(tag)}</h1>\n"
        '<ul class="tag-posts">\n' + "\n".join(rows) + "\n</ul>\n"
        '<p><a href="all_tags.html">All tags</a></p>'
    )


def page_title(config: SiteConfig, suffix: str) -> str:
    return html.escape(f"{config.site_title} - {suffix}")


def build_main_index(content_root: Path, config: SiteConfig) -> bool:
    try:
        root = canonical(content_root)
        posts = collect_posts(root, with_summary=True)
        assemble_page(
            "index", page_title(config, "Home"), render_index_body(posts, config), root / "index.html", root, config
        )
    except SiteError as exc:
        print(f"Error: index.html not built: {exc}", file=sys.stderr)
        return False
    return True


def build_archive(content_root: Path, config: SiteConfig) -> bool:
    try:
        root = canonical(content_root)
        posts = collect_posts(root)
        assemble_page(
            "all_posts",
            page_title(config, "All Posts"),
            render_archive_body(posts, config),
            root / "all_posts.html",
            root,
            config,
        )
    except SiteError as exc:
        print(f"Error: all_posts.html not built: {exc}", file=sys.stderr)
        return False
    return True


def remove_stale_tag_pages(root: Path, names: dict[str, str]) -> None:
    current = set(names.values())
    for path in root.glob("tag_*.html"):
        if not path.is_file() or path.name in current or path.with_suffix(FRAGMENT_SUFFIX).exists():
            continue
        try:
            path.unlink()
        except FileNotFoundError:
            pass


def build_tag_index(content_root: Path, config: SiteConfig, failed: Optional[list[str]] = None) -> bool:
    try:
        root = canonical(content_root)
        tag_map = collect_tags(collect_posts(root))
        names = tag_page_names(list(tag_map))
        assemble_page(
            "all_tags",
            page_title(config, "All Tags"),
            render_all_tags_body(tag_map, names),
            root / "all_tags.html",
            root,
            config,
        )
    except SiteError as exc:
        print(f"Error: all_tags.html not built: {exc}", file=sys.stderr)
        return False

    for tag in sorted(tag_map):
        try:
            assemble_page(
                "tag",
                page_title(config, f"Tag: {tag}"),
                render_tag_body(tag, tag_map[tag], config),
                root / names[tag],
                root,
                config,
            )
        except SiteError as exc:
            print(f"Error: {names[tag]} not built: {exc}", file=sys.stderr)
            if failed is not None:
                failed.append(names[tag])
    remove_stale_tag_pages(root, names)
    return True
