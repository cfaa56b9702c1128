"""
Theme loader and manager for termdeck presentations.

Themes are color palettes. Each theme is a YAML file in the themes
directory (the package's themes/ by default):
  - <name>.yaml: colors for text, background, headings, inline code,
    block quotes, list bullets and the status line

Names may be given with a "catppuccin-" prefix ("catppuccin-latte" and
"latte" are the same theme).
"""

import yaml
from functools import lru_cache
from pathlib import Path
from typing import Dict, Any, Optional


PACKAGE_THEMES_DIR: Path = Path(__file__).resolve().parent.parent / "themes"
THEME_PREFIX: str = "catppuccin-"


class ThemeError(Exception):
    """Raised when theme loading or validation fails"""
    pass


class Theme:
    """
    Represents a termdeck palette.

    A theme consists of the configuration in <name>.yaml; colors are
    '#rrggbb' strings reached through config_get() or the role properties.
    """

    def __init__(self, theme_name: str, themes_dir: Optional[str] = None):
        """
        Load a theme by name.

        Args:
            theme_name: Name of the theme (e.g., "mocha", "catppuccin-latte")
            themes_dir: Path to themes directory (default: package themes/)

        Raises:
            ThemeError: If the theme file doesn't exist or can't be parsed
        """
        self.themes_dir = Path(themes_dir) if themes_dir else PACKAGE_THEMES_DIR
        self.name = theme_nameNormalize(theme_name)
        self.config_path = self.themes_dir / f"{self.name}.yaml"

        # Validate theme file exists
        if not self.config_path.exists():
            raise ThemeError(
                f"Theme '{theme_name}' not found. "
                f"Expected file: {self.config_path}"
            )

        self.config = self._config_load()

    def _config_load(self) -> Dict[str, Any]:
        """Load and parse <name>.yaml"""
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                config: Any = yaml.safe_load(f)
                if config is None:
                    config = {}
                if not isinstance(config, dict):
                    raise ThemeError(f"Theme '{self.name}' must be a YAML mapping")
                return config
        except yaml.YAMLError as e:
            raise ThemeError(f"Failed to parse {self.config_path.name}: {e}")
        except OSError as e:
            raise ThemeError(f"Failed to load {self.config_path.name}: {e}")

    def config_get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value from the theme file.

        Supports nested keys with dot notation:
          theme.config_get('colors.bg', '#000000')

        Args:
            key: Configuration key (supports dot notation)
            default: Default value if key doesn't exist

        Returns:
            Configuration value or default
        """
        keys: list[str] = key.split('.')
        value: Any = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    @property
    def fg(self) -> str:
        return self.config_get('colors.fg', '#cdd6f4')

    @property
    def bg(self) -> str:
        return self.config_get('colors.bg', '#1e1e2e')

    @property
    def surface(self) -> str:
        return self.config_get('colors.surface', self.bg)

    def headingColor_get(self, level: int) -> str:
        """Heading color; levels beyond 4 share the h4 color"""
        return self.config_get(f'headings.h{min(max(level, 1), 4)}', self.fg)

    @property
    def inline_code_fg(self) -> str:
        return self.config_get('inline_code.fg', self.fg)

    @property
    def block_quote_prefix(self) -> str:
        return self.config_get('block_quote.prefix', self.fg)

    @property
    def list_bullet(self) -> str:
        return self.config_get('list.bullet', self.fg)

    @property
    def status_fg(self) -> str:
        return self.config_get('status.fg', self.fg)

    @property
    def status_bg(self) -> str:
        return self.config_get('status.bg', self.surface)

    def __repr__(self) -> str:
        return f"Theme(name='{self.name}', path='{self.config_path}')"


def theme_nameNormalize(name: str) -> str:
    """Lower-case a theme name and strip the optional 'catppuccin-' prefix"""
    normalized = name.strip().lower()
    if normalized.startswith(THEME_PREFIX):
        normalized = normalized[len(THEME_PREFIX):]
    return normalized.replace('é', 'e')


def themes_listAvailable(themes_dir: Optional[str] = None) -> list[str]:
    """
    List all available theme names.

    Args:
        themes_dir: Path to themes directory (default: package themes/)

    Returns:
        Sorted theme names (stems of the .yaml files)
    """
    themes_path: Path = Path(themes_dir) if themes_dir else PACKAGE_THEMES_DIR

    if not themes_path.exists():
        return []

    return sorted(item.stem for item in themes_path.glob("*.yaml") if item.is_file())


def theme_nameResolve(name: str, themes_dir: Optional[str] = None) -> Optional[str]:
    """
    Map a user-supplied theme name to an installed theme.

    Args:
        name: Name as written by the user
        themes_dir: Path to themes directory

    Returns:
        Installed theme name, or None if there is no such theme
    """
    normalized = theme_nameNormalize(name)
    return normalized if normalized in themes_listAvailable(themes_dir) else None


@lru_cache(maxsize=None)
def theme_load(name: str, themes_dir: Optional[str] = None) -> Theme:
    """Load a theme once per (name, directory)"""
    return Theme(name, themes_dir)
