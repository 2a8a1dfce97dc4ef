"""Configuration management for pendector.

Settings come from three layers, highest precedence first:

1. Command-line options
2. A ``[[path_configs]]`` entry matching the scanned path
3. The ``[defaults]`` table of the config file

Anything still unset falls back to the built-in defaults below. Layers are
combined by ``resolve_options``, a pure function over ``ScanOverrides``.

Config file lookup: ``--config`` option, then the ``PENDECTOR_CONFIG``
environment variable, then ``$XDG_CONFIG_HOME/pendector/config.toml``.
"""

import os
import tomllib
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

from .core.errors import ConfigError, FileSystemError
from .core.fetch import DEFAULT_FETCH_TIMEOUT

DEFAULT_MAX_DEPTH = 3
DEFAULT_FETCH = False
DEFAULT_FORMAT = "text"
DEFAULT_PATHS = ["."]

OUTPUT_FORMATS = ("text", "json")

CONFIG_ENV_VAR = "PENDECTOR_CONFIG"


@dataclass
class ScanOverrides:
    """One layer of settings; None means "not set in this layer"."""

    max_depth: Optional[int] = None
    fetch: Optional[bool] = None
    fetch_timeout: Optional[float] = None
    format: Optional[str] = None
    verbose: Optional[bool] = None
    changes_only: Optional[bool] = None
    exclude: Optional[List[str]] = None


@dataclass(frozen=True)
class ScanOptions:
    """Fully resolved settings for scanning one base path."""

    max_depth: int = DEFAULT_MAX_DEPTH
    fetch: bool = DEFAULT_FETCH
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    format: str = DEFAULT_FORMAT
    verbose: bool = False
    changes_only: bool = False
    exclude: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.max_depth < 0:
            raise ConfigError(None, f"max_depth must be non-negative, got {self.max_depth}")
        if self.fetch_timeout < 0:
            raise ConfigError(None, f"fetch_timeout must be non-negative, got {self.fetch_timeout}")
        if self.format not in OUTPUT_FORMATS:
            raise ConfigError(
                None,
                f"Unknown output format '{self.format}'. Available: {', '.join(OUTPUT_FORMATS)}"
            )


def resolve_options(
    cli: Optional[ScanOverrides] = None,
    path_config: Optional[ScanOverrides] = None,
    defaults: Optional[ScanOverrides] = None
) -> ScanOptions:
    """Combine setting layers into one resolved struct.

    Each scalar setting takes the first non-None value from cli,
    path_config, defaults, then the built-in default. Exclude patterns
    accumulate across all layers instead.

    Args:
        cli: Command-line layer
        path_config: Path-specific layer
        defaults: Config file defaults layer

    Returns:
        ScanOptions

    Raises:
        ConfigError: If the resolved values are invalid
    """
    layers = [layer for layer in (cli, path_config, defaults) if layer is not None]
    builtin = ScanOptions()

    resolved: Dict[str, Any] = {}
    for f in fields(ScanOverrides):
        if f.name == 'exclude':
            continue
        value = next(
            (getattr(layer, f.name) for layer in layers if getattr(layer, f.name) is not None),
            getattr(builtin, f.name)
        )
        resolved[f.name] = value

    exclude: List[str] = []
    for layer in reversed(layers):
        exclude.extend(layer.exclude or [])
    resolved['exclude'] = exclude

    return ScanOptions(**resolved)


def expand_path(path: str) -> str:
    """Expand ``~`` and return an absolute, symlink-resolved path."""
    return os.path.realpath(os.path.expanduser(path))


def path_matches(config_path: str, target_path: str) -> bool:
    """Check whether a configured path covers a target path.

    Args:
        config_path: Path from a ``[[path_configs]]`` entry
        target_path: Path being scanned

    Returns:
        True if target equals config_path or lies below it
    """
    config_real = expand_path(config_path)
    target_real = expand_path(target_path)
    if target_real == config_real:
        return True
    return target_real.startswith(config_real.rstrip(os.sep) + os.sep)


@dataclass
class PathConfig:
    """Settings that apply to one base path and everything below it."""

    path: str
    overrides: ScanOverrides = field(default_factory=ScanOverrides)


@dataclass
class Config:
    """Contents of the config file."""

    defaults: ScanOverrides = field(default_factory=ScanOverrides)
    paths: List[str] = field(default_factory=lambda: list(DEFAULT_PATHS))
    path_configs: List[PathConfig] = field(default_factory=list)
    source: Optional[str] = None

    @classmethod
    def default_config_path(cls) -> str:
        """Get the default config file location."""
        config_home = os.getenv('XDG_CONFIG_HOME') or os.path.join(os.path.expanduser('~'), '.config')
        return os.path.join(config_home, 'pendector', 'config.toml')

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> 'Config':
        """Load configuration from a TOML file.

        A missing file yields the built-in defaults.

        Args:
            config_path: Explicit file path (overrides PENDECTOR_CONFIG)

        Returns:
            Config instance

        Raises:
            FileSystemError: If the file exists but cannot be read
            ConfigError: If the file is not valid TOML or has bad values
        """
        path = config_path or os.getenv(CONFIG_ENV_VAR) or cls.default_config_path()
        path = os.path.expanduser(path)

        if not os.path.exists(path):
            return cls()

        try:
            with open(path, 'rb') as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(path, f"Failed to parse config file: {e}") from e
        except OSError as e:
            raise FileSystemError(path, f"Failed to read config file: {e}") from e

        return cls.from_dict(data, source=path)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: Optional[str] = None) -> 'Config':
        """Build a Config from parsed TOML data.

        Args:
            data: Parsed TOML document
            source: File the data came from, for error messages

        Returns:
            Config instance

        Raises:
            ConfigError: If a table or value has the wrong type
        """
        defaults_table = data.get('defaults', {})
        if not isinstance(defaults_table, dict):
            raise ConfigError(source, "[defaults] must be a table")

        paths = defaults_table.get('paths', DEFAULT_PATHS)
        if not isinstance(paths, list) or not all(isinstance(p, str) for p in paths):
            raise ConfigError(source, "defaults.paths must be a list of strings")

        path_configs = []
        for entry in data.get('path_configs', []):
            if not isinstance(entry, dict) or not isinstance(entry.get('path'), str):
                raise ConfigError(source, "each [[path_configs]] entry needs a 'path' string")
            path_configs.append(PathConfig(
                path=entry['path'],
                overrides=_overrides_from_table(entry, source)
            ))

        return cls(
            defaults=_overrides_from_table(defaults_table, source),
            paths=list(paths),
            path_configs=path_configs,
            source=source
        )

    def get_path_config(self, target_path: str) -> Optional[ScanOverrides]:
        """Find the first path-specific entry covering a path.

        Args:
            target_path: Path being scanned

        Returns:
            Overrides of the matching entry, or None
        """
        for path_config in self.path_configs:
            if path_matches(path_config.path, target_path):
                return path_config.overrides
        return None

    def resolve(self, target_path: str, cli: Optional[ScanOverrides] = None) -> ScanOptions:
        """Resolve settings for scanning one base path.

        Args:
            target_path: Path being scanned
            cli: Command-line layer

        Returns:
            ScanOptions
        """
        return resolve_options(cli, self.get_path_config(target_path), self.defaults)


_EXPECTED_TYPES = {
    'max_depth': int,
    'fetch': bool,
    'fetch_timeout': (int, float),
    'format': str,
    'verbose': bool,
    'changes_only': bool,
}


def _overrides_from_table(table: Dict[str, Any], source: Optional[str]) -> ScanOverrides:
    """Read the known setting keys of a TOML table."""
    values: Dict[str, Any] = {}
    for key, expected in _EXPECTED_TYPES.items():
        if key not in table:
            continue
        value = table[key]
        # bool is an int subclass; reject it for numeric settings
        if not isinstance(value, expected) or (expected is not bool and isinstance(value, bool)):
            raise ConfigError(source, f"'{key}' has an invalid value: {value!r}")
        values[key] = value

    if 'exclude' in table:
        exclude = table['exclude']
        if not isinstance(exclude, list) or not all(isinstance(p, str) for p in exclude):
            raise ConfigError(source, "'exclude' must be a list of strings")
        values['exclude'] = list(exclude)

    overrides = ScanOverrides(**values)
    # ScanOptions holds the range and choice checks
    try:
        resolve_options(overrides)
    except ConfigError as e:
        raise ConfigError(source, e.message) from e
    return overrides
