from __future__ import annotations

from pathlib import Path

import pytest

from rawsite.config import (
    ButtonConfig,
    SiteConfig,
    load_config,
    read_site_config,
    resolve_description_html,
    site_config_from_mapping,
)
from rawsite.header import search_enabled

TOML = """
site_title = "Field Notes"
index_articles = "5"
permanent_buttons = ["home", "about"]
search_engine = "DuckDuckGo"

[buttons.home]
text = "Home"
url = "https://example.com/"
icon = "images0/home.png"
tooltip = "Go home"

[buttons.about]
text = "About"
url = "about.html"
"""


def test_missing_config_is_empty(tmp_path):
    assert load_config(tmp_path / "site.toml") == {}


def test_read_toml_config(tmp_path):
    path = tmp_path / "site.toml"
    path.write_text(TOML, encoding="utf-8")
    config = read_site_config(path)
    assert config.site_title == "Field Notes"
    assert config.index_articles == 5
    assert config.search_engine == "duckduckgo"
    assert config.permanent_buttons == ("home", "about")
    assert config.buttons["home"] == ButtonConfig("Home", "https://example.com/", "images0/home.png", "Go home")
    assert not config.buttons["about"].is_complete()
    assert config.base_dir == tmp_path.resolve()


def test_read_yaml_config(tmp_path):
    path = tmp_path / "site.yaml"
    path.write_text("site_title: Yaml Site\nsearch_pages: index post\n", encoding="utf-8")
    config = read_site_config(path)
    assert config.site_title == "Yaml Site"
    assert config.search_pages == "index post"


def test_invalid_json_exits(tmp_path):
    path = tmp_path / "site.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(SystemExit):
        load_config(path)


def test_defaults():
    config = site_config_from_mapping({})
    assert config == SiteConfig()
    assert config.index_articles == 10


def test_permanent_buttons_capped(capsys):
    config = site_config_from_mapping({"permanent_buttons": "a, b c d"})
    assert config.permanent_buttons == ("a", "b", "c")
    assert "d" in capsys.readouterr().err


def test_description_plain_text_is_escaped():
    assert resolve_description_html(SiteConfig(site_description="Tips & tricks")) == "<p>Tips &amp; tricks</p>"


def test_description_markdown_file(tmp_path):
    Path(tmp_path / "about.md").write_text("**Bold** text", encoding="utf-8")
    config = SiteConfig(description_file="about.md", base_dir=tmp_path)
    assert resolve_description_html(config) == "<p><strong>Bold</strong> text</p>"


def test_description_html_wins():
    config = SiteConfig(site_description="plain", description_html="<em>rich</em>")
    assert resolve_description_html(config) == "<em>rich</em>"


def test_search_pages_from_list():
    config = site_config_from_mapping({"search_pages": ["index", "post"]})
    assert config.search_pages == "index post"
    assert search_enabled(config, "index")
    assert not search_enabled(config, "tag")


def test_search_pages_from_toml_array(tmp_path):
    path = tmp_path / "site.toml"
    path.write_text('search_pages = ["all_tags", "tag"]\n', encoding="utf-8")
    assert read_site_config(path).search_pages == "all_tags tag"
