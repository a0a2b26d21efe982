from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ParseSkip

UNTITLED = "Untitled Post"
FRAGMENT_SUFFIX = ".htmraw"

TITLE_RE = re.compile(r"<h1(?:\s[^>]*)?>(.*?)</h1>", re.IGNORECASE | re.DOTALL)
RAW_TAGS_RE = re.compile(r"<!--RawTags:(.*?)-->", re.DOTALL)
BODY_RE = re.compile(r"<body(?:\s[^>]*)?>(.*?)</body>", re.IGNORECASE | re.DOTALL)
BODY_CLOSE_RE = re.compile(r"</body>", re.IGNORECASE)
NON_ALNUM_RE = re.compile(r"[^A-Za-z0-9]")


@dataclass(frozen=True)
class ContentFragment:
    title: str
    tags: tuple[str, ...]
    body: str
    raw_content: str


def parse_list(value: str) -> list[str]:
    items = []
    for item in value.split(","):
        item = item.strip()
        if item and item not in items:
            items.append(item)
    return items


def extract_title(raw: str) -> str:
    match = TITLE_RE.search(raw or "")
    if not match:
        return UNTITLED
    return match.group(1)


def extract_tags(raw: str) -> tuple[str, ...]:
    match = RAW_TAGS_RE.search(raw or "")
    if not match:
        return ()
    return tuple(parse_list(match.group(1)))


def extract_body(raw: str) -> str:
    match = BODY_RE.search(raw or "")
    if not match:
        return ""
    return match.group(1)


def format_tags_comment(tags: list[str] | tuple[str, ...]) -> str:
    return f"<!--RawTags:{','.join(tags)}-->"


def replace_tags_comment(raw: str, tags: list[str] | tuple[str, ...]) -> str:
    raw = raw or ""
    marker = format_tags_comment(tags)
    if RAW_TAGS_RE.search(raw):
        return RAW_TAGS_RE.sub(lambda _: marker, raw, count=1)
    match = BODY_CLOSE_RE.search(raw)
    if match:
        return f"{raw[:match.start()]}{marker}\n{raw[match.start():]}"
    return f"{raw}{marker}\n"


def parse_fragment(raw: Optional[str]) -> ContentFragment:
    raw = raw or ""
    return ContentFragment(
        title=extract_title(raw),
        tags=extract_tags(raw),
        body=extract_body(raw),
        raw_content=raw,
    )


def read_fragment(path: Path) -> ContentFragment:
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ParseSkip(f"Cannot read fragment {path}: {exc}") from exc
    return parse_fragment(raw)


def sanitize_tag(name: str) -> str:
    return NON_ALNUM_RE.sub("_", name)


def tag_filename(name: str) -> str:
    return f"tag_{sanitize_tag(name)}.html"


def output_path_for(fragment_path: Path) -> Path:
    return fragment_path.with_suffix(".html")
