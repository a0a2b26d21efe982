from __future__ import annotations

import html
import sys
from urllib.parse import urlparse

from .config import SiteConfig, resolve_description_html

HEADER_SLOTS = (
    "SECOND_BUTTON",
    "THIRD_BUTTON",
    "FOURTH_BUTTON",
    "FIFTH_BUTTON",
    "SIXTH_BUTTON",
    "SEVENTH_BUTTON",
)

SEARCH_ENGINES = {
    "google": ("https://www.google.com/search", "q", "sitesearch", ""),
    "duckduckgo": ("https://duckduckgo.com/", "q", "sites", ""),
    "bing": ("https://www.bing.com/search", "q", "q1", "site:"),
}


def slot_marker(name: str) -> str:
    return f"<!--{name}-->"


def build_button(text: str, url: str, icon: str = "", tooltip: str = "") -> str:
    title_attr = f' title="{html.escape(tooltip)}"' if tooltip else ""
    icon_html = f'<img class="nav-icon" src="{html.escape(icon)}" alt="">' if icon else ""
    return f'<a class="nav-button" href="{html.escape(url)}"{title_attr}>{icon_html}{html.escape(text)}</a>'


def build_permanent_buttons(config: SiteConfig) -> list[str]:
    buttons = []
    for key in config.permanent_buttons:
        button = config.buttons.get(key)
        if button is None:
            print(f"Warning: button '{key}' is not defined; skipping it.", file=sys.stderr)
            continue
        if not button.is_complete():
            print(f"Warning: button '{key}' needs text, url and icon; skipping it.", file=sys.stderr)
            continue
        buttons.append(build_button(button.text, button.url, button.icon, button.tooltip))
    return buttons


def build_dynamic_header(config: SiteConfig) -> str:
    parts = []
    banner = config.banner.strip()
    if banner:
        parts.append(
            '<div class="site-banner">'
            f'<img src="{html.escape(banner)}" alt="{html.escape(config.site_title)}">'
            "</div>"
        )
    parts.append(
        '<div class="site-heading">'
        f'<div class="site-title">{html.escape(config.site_title)}</div>'
        f'<div class="site-subtitle">{resolve_description_html(config)}</div>'
        "</div>"
    )
    controls = build_permanent_buttons(config)
    controls.extend(slot_marker(name) for name in HEADER_SLOTS)
    parts.append('<nav class="site-nav">\n' + "\n".join(controls) + "\n</nav>")
    return "\n".join(parts) + "\n"


def fill_slots(header: str, fills: dict[str, str]) -> str:
    unknown = set(fills) - set(HEADER_SLOTS)
    if unknown:
        raise ValueError(f"Unknown header slots: {sorted(unknown)}")
    for name in HEADER_SLOTS:
        header = header.replace(slot_marker(name), fills.get(name, ""), 1)
    return header


def build_history_button(config: SiteConfig, root: str) -> str:
    return build_button(config.history_text, f"{root}/all_posts.html")


def build_tags_button(config: SiteConfig, root: str) -> str:
    return build_button(config.tags_text, f"{root}/all_tags.html")


def build_rss_button(config: SiteConfig) -> str:
    if not config.rss_url.strip():
        return ""
    return build_button(config.rss_text, config.rss_url.strip())


def search_enabled(config: SiteConfig, page_type: str) -> bool:
    return page_type in config.search_pages.split()


def build_search_box(config: SiteConfig) -> str:
    engine = config.search_engine
    if not engine:
        return ""
    if engine not in SEARCH_ENGINES:
        print(f"Warning: unknown search engine '{engine}'; search box disabled.", file=sys.stderr)
        return ""
    action, query_field, site_field, site_prefix = SEARCH_ENGINES[engine]
    site_host = urlparse(config.site_url).netloc or config.site_url.strip()
    fields = [f'<input type="text" name="{query_field}" size="{config.search_width}" placeholder="Search">']
    if site_host:
        fields.append(f'<input type="hidden" name="{site_field}" value="{html.escape(site_prefix + site_host)}">')
    fields.append('<input type="submit" value="Search">')
    return f'<form class="site-search" method="get" action="{action}">' + "".join(fields) + "</form>"
