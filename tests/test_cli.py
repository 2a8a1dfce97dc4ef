from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from pendector.__main__ import create_parser, main, overrides_from_args, select_paths
from pendector.config import Config


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PENDECTOR_CONFIG", str(tmp_path / "no-such-config.toml"))
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.delenv("FORCE_COLOR", raising=False)
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def work(repos, tmp_path: Path) -> Path:
    work = tmp_path / "work"
    repos.commit(repos.init(work / "a"))
    b = repos.init(work / "b")
    repos.commit(b)
    (b / "x.txt").write_text("new\n")
    return work


def test_parser_leaves_settings_unset() -> None:
    args = create_parser().parse_args([])
    overrides = overrides_from_args(args)

    assert args.paths == []
    assert overrides.max_depth is None
    assert overrides.fetch is None
    assert overrides.exclude is None


def test_select_paths() -> None:
    config = Config(paths=["~/src"])

    assert select_paths([], config, add_path=False) == ["~/src"]
    assert select_paths(["/x"], config, add_path=False) == ["/x"]
    assert select_paths(["/x"], config, add_path=True) == ["~/src", "/x"]


def test_text_report(work: Path, capsys) -> None:
    assert main([str(work)]) == 0

    out = capsys.readouterr().out
    assert out.startswith("Found 2 repositories (1 with changes):")
    assert f"a [main] (0 changed files) - {work / 'a'}" in out
    assert f"b [main] (1 changed files) - {work / 'b'}" in out


def test_verbose_changes_only(work: Path, capsys) -> None:
    assert main([str(work), "-c", "-v"]) == 0

    out = capsys.readouterr().out
    assert "a [main]" not in out
    assert "    ?? x.txt" in out


def test_json_report(work: Path, capsys) -> None:
    assert main([str(work), "--format", "json"]) == 0

    data = json.loads(capsys.readouterr().out)
    assert [r["name"] for r in data] == ["a", "b"]
    assert data[1]["changed_files"] == [{"kind": "added", "path": "x.txt"}]


def test_depth_zero_finds_nothing_below_root(work: Path, capsys) -> None:
    assert main([str(work), "--max-depth", "0"]) == 0

    assert capsys.readouterr().out.strip() == "No repositories found."


def test_missing_path_exits_1(tmp_path: Path, capsys) -> None:
    assert main([str(tmp_path / "missing")]) == 1

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "does not exist" in captured.err


def test_invalid_option_value_exits_2(tmp_path: Path, capsys) -> None:
    assert main([str(tmp_path), "--max-depth", "-1"]) == 2

    assert "max_depth must be non-negative" in capsys.readouterr().err


def test_paths_and_settings_from_config(work: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    config = tmp_path / "config.toml"
    config.write_text(f"""
[defaults]
paths = ["{work}"]
format = "json"

[[path_configs]]
path = "{work}"
exclude = ["b"]
""")
    monkeypatch.setenv("PENDECTOR_CONFIG", str(config))

    assert main([]) == 0

    data = json.loads(capsys.readouterr().out)
    assert [r["name"] for r in data] == ["a"]


def test_no_config_ignores_file(work: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    config = tmp_path / "config.toml"
    config.write_text('[defaults]\nformat = "json"\n')
    monkeypatch.setenv("PENDECTOR_CONFIG", str(config))

    assert main([str(work), "--no-config"]) == 0

    assert capsys.readouterr().out.startswith("Found 2 repositories")


def test_broken_config_falls_back_to_defaults(work: Path, tmp_path: Path, capsys) -> None:
    config = tmp_path / "broken.toml"
    config.write_text("[defaults\n")

    assert main([str(work), "--config", str(config)]) == 0

    captured = capsys.readouterr()
    assert captured.out.startswith("Found 2 repositories")
    assert "Using default configuration" in captured.err


@pytest.mark.parametrize("body", ['[defaults]\nformat = "xml"\n', "[defaults]\nmax_depth = -1\n"])
def test_config_with_bad_value_falls_back_to_defaults(work: Path, tmp_path: Path, capsys, body: str) -> None:
    config = tmp_path / "bad-values.toml"
    config.write_text(body)

    assert main([str(work), "--config", str(config)]) == 0

    captured = capsys.readouterr()
    assert captured.out.startswith("Found 2 repositories")
    assert str(config) in captured.err
    assert "Using default configuration" in captured.err


def test_add_path_scans_configured_and_given_paths(repos, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    first = tmp_path / "first"
    repos.commit(repos.init(first / "one"))
    second = tmp_path / "second"
    repos.commit(repos.init(second / "two"))
    config = tmp_path / "config.toml"
    config.write_text(f'[defaults]\npaths = ["{first}"]\nformat = "json"\n')
    monkeypatch.setenv("PENDECTOR_CONFIG", str(config))

    assert main([str(second), "--add-path"]) == 0

    data = json.loads(capsys.readouterr().out)
    assert [r["name"] for r in data] == ["one", "two"]


def test_overlapping_paths_report_each_repository_once(work: Path, capsys) -> None:
    assert main([str(work), str(work / "a"), str(work), "--format", "json"]) == 0

    data = json.loads(capsys.readouterr().out)
    assert [r["name"] for r in data] == ["a", "b"]


def test_version(capsys) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["--version"])

    assert exc.value.code == 0
    assert "pendector" in capsys.readouterr().out
