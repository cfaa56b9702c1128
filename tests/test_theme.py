"""
Theme loader tests

Tests palette discovery, name resolution and color lookup.
"""

import pytest

from termdeck.lib.banner import banner_render
from termdeck.lib.theme import (
    Theme,
    ThemeError,
    theme_load,
    theme_nameResolve,
    themes_listAvailable,
)


class TestDiscovery:
    """Test listing and resolving palettes"""

    def test_bundled_palettes(self):
        assert themes_listAvailable() == ["frappe", "latte", "macchiato", "mocha"]

    def test_resolve_plain(self):
        assert theme_nameResolve("mocha") == "mocha"

    def test_resolve_prefixed(self):
        """The catppuccin- prefix and case are ignored"""
        assert theme_nameResolve("Catppuccin-Latte") == "latte"

    def test_resolve_accent(self):
        assert theme_nameResolve("frappé") == "frappe"

    def test_resolve_unknown(self):
        assert theme_nameResolve("solarized") is None

    def test_custom_directory(self, tmp_path):
        (tmp_path / "paper.yaml").write_text("name: paper\ncolors:\n  fg: '#111111'\n  bg: '#ffffff'\n")
        assert themes_listAvailable(str(tmp_path)) == ["paper"]
        assert theme_nameResolve("paper", str(tmp_path)) == "paper"


class TestColors:
    """Test palette lookups"""

    def test_base_colors(self):
        theme = Theme("mocha")
        assert theme.fg == "#cdd6f4"
        assert theme.bg == "#1e1e2e"
        assert theme.surface == "#313244"

    def test_heading_levels(self):
        """Levels past h4 reuse the h4 color"""
        theme = Theme("latte")
        assert theme.headingColor_get(4) == "#d20f39"
        assert theme.headingColor_get(6) == theme.headingColor_get(4)

    def test_config_get_dotted(self):
        assert Theme("mocha").config_get("status.bg") == "#313244"
        assert Theme("mocha").config_get("no.such.key", "x") == "x"

    def test_load_cached(self):
        assert theme_load("frappe") is theme_load("frappe")


class TestErrors:
    """Test broken palettes"""

    def test_missing_theme(self):
        with pytest.raises(ThemeError):
            Theme("solarized")

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / "broken.yaml").write_text("colors: [unclosed\n")
        with pytest.raises(ThemeError):
            Theme("broken", str(tmp_path))


class TestBanner:
    """Test figlet rendering"""

    def test_banner_lines(self):
        lines = banner_render("Hi", "standard")
        assert len(lines) > 1
        assert lines[-1].strip()

    def test_unknown_font(self):
        """An unknown font leaves the text as one line"""
        assert banner_render("Hi", "no-such-font") == ["Hi"]
