from __future__ import annotations

from pathlib import Path

import pytest

from pendector.config import (
    Config,
    ScanOptions,
    ScanOverrides,
    path_matches,
    resolve_options,
)
from pendector.core.errors import ConfigError


def test_builtin_defaults() -> None:
    options = resolve_options()

    assert options == ScanOptions(
        max_depth=3, fetch=False, fetch_timeout=5, format="text",
        verbose=False, changes_only=False, exclude=[],
    )


def test_cli_beats_path_config_beats_defaults() -> None:
    cli = ScanOverrides(max_depth=1)
    path_config = ScanOverrides(max_depth=2, fetch=True)
    defaults = ScanOverrides(max_depth=4, fetch=False, format="json")

    options = resolve_options(cli, path_config, defaults)

    assert options.max_depth == 1
    assert options.fetch is True
    assert options.format == "json"


def test_false_on_the_command_line_still_overrides() -> None:
    options = resolve_options(ScanOverrides(verbose=False), None, ScanOverrides(verbose=True))

    assert options.verbose is False


def test_exclude_patterns_accumulate_across_layers() -> None:
    options = resolve_options(
        ScanOverrides(exclude=["cli"]),
        ScanOverrides(exclude=["path"]),
        ScanOverrides(exclude=["defaults"]),
    )

    assert options.exclude == ["defaults", "path", "cli"]


@pytest.mark.parametrize(
    "overrides",
    [
        ScanOverrides(max_depth=-1),
        ScanOverrides(fetch_timeout=-0.5),
        ScanOverrides(format="yaml"),
    ],
)
def test_invalid_values_are_rejected(overrides: ScanOverrides) -> None:
    with pytest.raises(ConfigError):
        resolve_options(overrides)


def test_path_matches(tmp_path: Path) -> None:
    (tmp_path / "work" / "sub").mkdir(parents=True)
    (tmp_path / "workshop").mkdir()

    assert path_matches(str(tmp_path / "work"), str(tmp_path / "work"))
    assert path_matches(str(tmp_path / "work"), str(tmp_path / "work" / "sub"))
    assert not path_matches(str(tmp_path / "work"), str(tmp_path / "workshop"))


def write_config(path: Path, text: str) -> Path:
    path.write_text(text)
    return path


def test_load_missing_file_gives_defaults(tmp_path: Path) -> None:
    config = Config.load(str(tmp_path / "absent.toml"))

    assert config.source is None
    assert config.paths == ["."]
    assert config.path_configs == []


def test_load_full_file(tmp_path: Path) -> None:
    work = tmp_path / "work"
    work.mkdir()
    path = write_config(tmp_path / "config.toml", f"""
[defaults]
paths = ["~/src", "{work}"]
max_depth = 2
fetch_timeout = 10
exclude = ["node_modules"]

[[path_configs]]
path = "{work}"
fetch = true
max_depth = 5
exclude = ["build"]
""")

    config = Config.load(str(path))

    assert config.source == str(path)
    assert config.paths == ["~/src", str(work)]
    assert config.defaults.max_depth == 2
    assert config.defaults.fetch_timeout == 10

    at_work = config.resolve(str(work))
    assert (at_work.max_depth, at_work.fetch, at_work.fetch_timeout) == (5, True, 10)
    assert at_work.exclude == ["node_modules", "build"]

    elsewhere = config.resolve(str(tmp_path))
    assert (elsewhere.max_depth, elsewhere.fetch) == (2, False)

    with_cli = config.resolve(str(work), ScanOverrides(max_depth=0, exclude=["tmp"]))
    assert with_cli.max_depth == 0
    assert with_cli.exclude == ["node_modules", "build", "tmp"]


def test_environment_variable_selects_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = write_config(tmp_path / "env.toml", "[defaults]\nverbose = true\n")
    monkeypatch.setenv("PENDECTOR_CONFIG", str(path))

    assert Config.load().defaults.verbose is True


def test_explicit_path_wins_over_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PENDECTOR_CONFIG", str(write_config(tmp_path / "env.toml", "[defaults]\nmax_depth = 1\n")))
    explicit = write_config(tmp_path / "explicit.toml", "[defaults]\nmax_depth = 7\n")

    assert Config.load(str(explicit)).defaults.max_depth == 7


def test_default_location_follows_xdg(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PENDECTOR_CONFIG", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    (tmp_path / "pendector").mkdir()
    write_config(tmp_path / "pendector" / "config.toml", "[defaults]\nformat = \"json\"\n")

    assert Config.default_config_path() == str(tmp_path / "pendector" / "config.toml")
    assert Config.load().defaults.format == "json"


def test_malformed_toml(tmp_path: Path) -> None:
    path = write_config(tmp_path / "bad.toml", "[defaults\nmax_depth = ")

    with pytest.raises(ConfigError, match="Failed to parse config file"):
        Config.load(str(path))


@pytest.mark.parametrize(
    "body",
    [
        "[defaults]\nmax_depth = \"three\"\n",
        "[defaults]\nmax_depth = true\n",
        "[defaults]\nfetch = 1\n",
        "[defaults]\nexclude = \"node_modules\"\n",
        "[defaults]\npaths = \"~/src\"\n",
        "[[path_configs]]\nmax_depth = 2\n",
        "defaults = 3\n",
        "[defaults]\nformat = \"xml\"\n",
        "[defaults]\nmax_depth = -1\n",
        "[[path_configs]]\npath = \"/tmp\"\nfetch_timeout = -2\n",
    ],
)
def test_wrong_types_are_rejected(tmp_path: Path, body: str) -> None:
    path = write_config(tmp_path / "config.toml", body)

    with pytest.raises(ConfigError):
        Config.load(str(path))


def test_bad_value_error_names_the_file(tmp_path: Path) -> None:
    path = write_config(tmp_path / "config.toml", '[defaults]\nformat = "xml"\n')

    with pytest.raises(ConfigError) as exc:
        Config.load(str(path))

    assert exc.value.path == str(path)
    assert str(path) in str(exc.value)
    assert "Unknown output format 'xml'" in str(exc.value)


def test_first_matching_path_config_wins(tmp_path: Path) -> None:
    config = Config.from_dict({
        "path_configs": [
            {"path": str(tmp_path), "max_depth": 1},
            {"path": str(tmp_path / "inner"), "max_depth": 9},
        ]
    })

    assert config.resolve(str(tmp_path / "inner")).max_depth == 1
