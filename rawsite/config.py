from __future__ import annotations

import html
import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import markdown

from .utils import parse_int

try:
    import tomllib as toml
except ImportError:
    try:
        import tomli as toml
    except ImportError:  # pragma: no cover - optional dependency
        toml = None

try:
    import yaml
except ImportError:  # pragma: no cover - optional dependency
    yaml = None

MAX_PERMANENT_BUTTONS = 3
DEFAULT_SEARCH_PAGES = "index all_posts all_tags tag post"


@dataclass(frozen=True)
class ButtonConfig:
    text: str = ""
    url: str = ""
    icon: str = ""
    tooltip: str = ""

    def is_complete(self) -> bool:
        return bool(self.text.strip() and self.url.strip() and self.icon.strip())


@dataclass(frozen=True)
class SiteConfig:
    site_title: str = "My Site"
    site_description: str = ""
    description_html: str = ""
    description_file: str = ""
    banner: str = ""
    buttons: dict = field(default_factory=dict)
    permanent_buttons: tuple = ()
    history_text: str = "All Posts"
    tags_text: str = "Tags"
    rss_text: str = "RSS"
    rss_url: str = ""
    search_engine: str = ""
    search_width: int = 20
    search_pages: str = DEFAULT_SEARCH_PAGES
    site_url: str = ""
    index_articles: int = 10
    date_format: str = "%Y-%m-%d"
    full_date_format: str = "%A, %d %B %Y %H:%M"
    editor: str = ""
    base_dir: Optional[Path] = None


def load_config(path: Path) -> dict:
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")
    if suffix == ".toml":
        if toml is None:
            print("TOML config requires tomllib (Python 3.11+) or tomli.", file=sys.stderr)
            sys.exit(1)
        try:
            data = toml.loads(text)
        except Exception as exc:  # pragma: no cover - depends on parser
            print(f"Invalid TOML in config file {path}: {exc}", file=sys.stderr)
            sys.exit(1)
        if not isinstance(data, dict):
            print(f"TOML config must be a mapping: {path}", file=sys.stderr)
            sys.exit(1)
        return data
    if suffix in {".yml", ".yaml"}:
        if yaml is None:
            print("YAML config requires PyYAML.", file=sys.stderr)
            sys.exit(1)
        try:
            data = yaml.safe_load(text)
        except Exception as exc:  # pragma: no cover - depends on parser
            print(f"Invalid YAML in config file {path}: {exc}", file=sys.stderr)
            sys.exit(1)
        if data is None:
            return {}
        if not isinstance(data, dict):
            print(f"YAML config must be a mapping: {path}", file=sys.stderr)
            sys.exit(1)
        return data
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        print(f"Invalid JSON in config file {path}: {exc}", file=sys.stderr)
        sys.exit(1)


def parse_buttons(value: object) -> dict[str, ButtonConfig]:
    if not isinstance(value, dict):
        return {}
    buttons = {}
    for key, item in value.items():
        if not isinstance(item, dict):
            print(f"Warning: button '{key}' must be a table; ignoring it.", file=sys.stderr)
            continue
        buttons[str(key)] = ButtonConfig(
            text=str(item.get("text") or ""),
            url=str(item.get("url") or ""),
            icon=str(item.get("icon") or ""),
            tooltip=str(item.get("tooltip") or ""),
        )
    return buttons


def parse_button_ids(value: object) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        ids = [item.strip() for item in value.replace(",", " ").split()]
    else:
        ids = [str(item).strip() for item in value]
    ids = [item for item in ids if item]
    if len(ids) > MAX_PERMANENT_BUTTONS:
        print(
            f"Warning: only {MAX_PERMANENT_BUTTONS} permanent buttons are shown; ignoring {ids[MAX_PERMANENT_BUTTONS:]}.",
            file=sys.stderr,
        )
    return tuple(ids[:MAX_PERMANENT_BUTTONS])


def parse_page_types(value: object, default: str) -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return " ".join(value.replace(",", " ").split())
    return " ".join(str(item).strip() for item in value if str(item).strip())


def site_config_from_mapping(data: dict, base_dir: Optional[Path] = None) -> SiteConfig:
    defaults = SiteConfig()

    def cfg_str(key: str) -> str:
        value = data.get(key)
        return getattr(defaults, key) if value is None else str(value)

    def cfg_int(key: str) -> int:
        return parse_int(data.get(key), getattr(defaults, key))

    return SiteConfig(
        site_title=cfg_str("site_title"),
        site_description=cfg_str("site_description"),
        description_html=cfg_str("description_html"),
        description_file=cfg_str("description_file"),
        banner=cfg_str("banner"),
        buttons=parse_buttons(data.get("buttons")),
        permanent_buttons=parse_button_ids(data.get("permanent_buttons")),
        history_text=cfg_str("history_text"),
        tags_text=cfg_str("tags_text"),
        rss_text=cfg_str("rss_text"),
        rss_url=cfg_str("rss_url"),
        search_engine=cfg_str("search_engine").strip().lower(),
        search_width=max(1, cfg_int("search_width")),
        search_pages=parse_page_types(data.get("search_pages"), defaults.search_pages),
        site_url=cfg_str("site_url"),
        index_articles=max(0, cfg_int("index_articles")),
        date_format=cfg_str("date_format"),
        full_date_format=cfg_str("full_date_format"),
        editor=cfg_str("editor"),
        base_dir=base_dir,
    )


def read_site_config(path: Path) -> SiteConfig:
    path = Path(path)
    return site_config_from_mapping(load_config(path), base_dir=path.resolve().parent)


def resolve_description_html(config: SiteConfig) -> str:
    html_snippet = config.description_html.strip()
    if html_snippet:
        return html_snippet

    file_value = config.description_file.strip()
    if file_value:
        path = Path(file_value)
        if not path.is_absolute() and config.base_dir is not None:
            path = config.base_dir / path
        if not path.exists():
            print(f"Warning: description file not found: {path}", file=sys.stderr)
        else:
            text = path.read_text(encoding="utf-8")
            suffix = path.suffix.lower()
            if suffix in {".html", ".htm"}:
                return text
            if suffix == ".md":
                md = markdown.Markdown(extensions=["tables"])
                return md.convert(text)
            escaped = html.escape(text).replace("\n", "<br>")
            return f"<p>{escaped}</p>"

    if not config.site_description.strip():
        return ""
    return f"<p>{html.escape(config.site_description)}</p>"
