from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from pathlib import Path

from .errors import MissingTemplate, UnresolvablePath, WriteFailure

TEMPLATES_DIRNAME = "cms_config"
TEMPLATE_FILES = {
    "header": "cms_header.txt",
    "footer": "cms_footer.txt",
    "begin": "cms_begin.txt",
    "end": "cms_end.txt",
    "skeleton": "cms_skeleton.txt",
}
STRUCTURAL_TEMPLATES = ("header", "footer", "begin", "end")
ASSET_DIRS = ("images0", "css")
ASSET_TAGS = ("a", "link", "img", "script", "iframe", "source")

TAG_RE = re.compile(r"<[^>]+>")
HEAD_CLOSE = "</head>"


@dataclass(frozen=True)
class TemplateSet:
    header: str = ""
    footer: str = ""
    begin: str = ""
    end: str = ""
    skeleton: str = ""


def strip_tags(html_text: str) -> str:
    return TAG_RE.sub("", html_text)


def load_template(path: Path) -> str:
    if not path.is_file():
        raise MissingTemplate(f"Template not found: {path}")
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise MissingTemplate(f"Cannot read template {path}: {exc}") from exc


def load_templates(templates_dir: Path, names: tuple[str, ...] = STRUCTURAL_TEMPLATES) -> TemplateSet:
    loaded = {name: load_template(templates_dir / TEMPLATE_FILES[name]) for name in names}
    return TemplateSet(**loaded)


def inject_title(header: str, title: str) -> str:
    return header.replace(HEAD_CLOSE, f"<title>{title}</title>\n{HEAD_CLOSE}", 1)


def write_text(path: Path, text: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise WriteFailure(f"Cannot write {path}: {exc}") from exc


def canonical(path: Path) -> Path:
    try:
        return Path(path).expanduser().resolve()
    except (OSError, RuntimeError) as exc:
        raise UnresolvablePath(f"Cannot resolve path {path}: {exc}") from exc


def determine_depth(file_path: Path, site_root: Path) -> int:
    parent_parts = [part.casefold() for part in canonical(file_path).parent.parts]
    root_parts = [part.casefold() for part in canonical(site_root).parts]
    if parent_parts[: len(root_parts)] != root_parts:
        print(f"Warning: {file_path} is not under {site_root}; using depth 0.", file=sys.stderr)
        return 0
    return len(parent_parts) - len(root_parts)


def relative_root(depth: int) -> str:
    if depth <= 0:
        return "."
    return "/".join([".."] * depth)


def _asset_ref_re(folder: str) -> re.Pattern:
    tags = "|".join(ASSET_TAGS)
    return re.compile(
        rf"(?i:(<(?:{tags})\b[^>]*?\b(?:href|src)\s*=\s*))"
        rf"([\"'])({re.escape(folder)})(?=/|\2)"
    )


def adjust_asset_paths(html_text: str, depth: int, asset_dirs: tuple[str, ...] = ASSET_DIRS) -> str:
    if depth <= 0:
        return html_text
    prefix = "../" * depth
    for folder in asset_dirs:
        html_text = _asset_ref_re(folder).sub(
            lambda m: f"{m.group(1)}{m.group(2)}{prefix}{m.group(3)}", html_text
        )
    return html_text
