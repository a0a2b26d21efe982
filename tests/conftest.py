from __future__ import annotations

import datetime as dt
import os
from pathlib import Path

import pytest

from rawsite.config import ButtonConfig, SiteConfig

HEADER = '<html>\n<head>\n<link rel="stylesheet" href="css/site.css">\n</head>\n<body>\n'
BEGIN = '<div class="content">\n'
END = "</div>\n"
FOOTER = '<footer><img src="images0/footer.png" alt=""></footer>\n</body>\n</html>\n'
SKELETON = "<html>\n<body>\n<h1>Title</h1>\n<p>Write here.</p>\n<!--RawTags:-->\n</body>\n</html>\n"


def write_templates(root: Path) -> None:
    templates = root / "cms_config"
    templates.mkdir(parents=True, exist_ok=True)
    templates.joinpath("cms_header.txt").write_text(HEADER, encoding="utf-8")
    templates.joinpath("cms_begin.txt").write_text(BEGIN, encoding="utf-8")
    templates.joinpath("cms_end.txt").write_text(END, encoding="utf-8")
    templates.joinpath("cms_footer.txt").write_text(FOOTER, encoding="utf-8")
    templates.joinpath("cms_skeleton.txt").write_text(SKELETON, encoding="utf-8")


def write_fragment(
    root: Path,
    rel: str,
    title: str = "A post",
    body: str = "<p>Hello</p>",
    tags: str = "",
    when: dt.datetime = dt.datetime(2024, 1, 15, 12, 0),
) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    marker = f"<!--RawTags:{tags}-->\n" if tags else ""
    path.write_text(f"<html>\n<h1>{title}</h1>\n<body>\n{body}\n{marker}</body>\n</html>\n", encoding="utf-8")
    stamp = when.timestamp()
    os.utime(path, (stamp, stamp))
    return path


@pytest.fixture
def site(tmp_path: Path) -> Path:
    root = tmp_path / "site"
    write_templates(root)
    return root


@pytest.fixture
def config() -> SiteConfig:
    return SiteConfig(
        site_title="Test Site",
        site_description="Notes and things",
        buttons={"home": ButtonConfig(text="Home", url="https://example.com/", icon="images0/home.png")},
        permanent_buttons=("home",),
        rss_url="https://example.com/rss.xml",
        search_engine="google",
        site_url="https://example.com",
    )
