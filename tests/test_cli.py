"""Tests for the command-line interface."""

import json

import pytest
from click.testing import CliRunner

from neb_repo import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def repo(tmp_path, runner, catalog_file, make_entry):
    """A synced on-disk database."""
    db_path = tmp_path / "repo.db"
    json_path = catalog_file(
        [
            make_entry("MVPS", "4.5.0", title="MediaVPs 2014", last_update="2020-01-01"),
            make_entry("MVPS", "4.5.1", title="MediaVPs 2014", last_update="2021-01-01"),
            make_entry("str", "1.6.0", title="Silent Threat Reborn"),
        ]
    )
    result = runner.invoke(cli.main, ["update", str(db_path), str(json_path)])
    assert result.exit_code == 0, result.output
    return db_path


def test_update_reports_changes(tmp_path, runner, repo, catalog_file, make_entry):
    json_path = catalog_file(
        [
            make_entry("MVPS", "4.5.1", title="MediaVPs 2014", last_update="2021-01-01"),
            make_entry("str", "1.6.0", title="Silent Threat Reborn"),
            make_entry("BP", "1.0", title="Blue Planet"),
        ],
        name="repo2.json",
    )
    result = runner.invoke(cli.main, ["update", str(repo), str(json_path)])

    assert result.exit_code == 0, result.output
    assert "[ADD]    Blue Planet (1.0)" in result.output
    assert "[DELETE] MediaVPs 2014 (4.5.0)" in result.output


def test_update_twice_is_up_to_date(runner, repo, catalog_file, make_entry):
    json_path = catalog_file(
        [
            make_entry("MVPS", "4.5.0", title="MediaVPs 2014", last_update="2020-01-01"),
            make_entry("MVPS", "4.5.1", title="MediaVPs 2014", last_update="2021-01-01"),
            make_entry("str", "1.6.0", title="Silent Threat Reborn"),
        ]
    )
    result = runner.invoke(cli.main, ["update", str(repo), str(json_path)])
    assert "up to date" in result.output


def test_update_in_memory(runner, catalog_file, make_entry):
    json_path = catalog_file([make_entry("A", "1.0")])
    result = runner.invoke(cli.main, ["update", ":memory:", str(json_path)])
    assert result.exit_code == 0, result.output


def test_update_bad_catalog(tmp_path, runner):
    json_path = tmp_path / "repo.json"
    json_path.write_text("[]")
    result = runner.invoke(cli.main, ["update", str(tmp_path / "repo.db"), str(json_path)])
    assert result.exit_code == 1
    assert "Error" in result.output
    assert not (tmp_path / "repo.db").exists()


def test_list(runner, repo):
    result = runner.invoke(cli.main, ["list", str(repo)])
    assert result.output.splitlines() == ["MediaVPs 2014", "Silent Threat Reborn"]


def test_list_json(runner, repo):
    result = runner.invoke(cli.main, ["list-json", str(repo)])
    data = json.loads(result.output)
    assert [m["mid"] for m in data["mods"]] == ["MVPS", "str"]
    assert set(data["mods"][0]) == {"mid", "title", "poster_url"}


def test_search(runner, repo):
    result = runner.invoke(cli.main, ["search", str(repo), "silent"])
    assert result.output == f"{'str':<15}  Silent Threat Reborn\n"


def test_search_case_sensitive(runner, repo):
    result = runner.invoke(cli.main, ["search", "--case-sensitive", str(repo), "silent"])
    assert result.exit_code == 0, result.output
    assert result.output == ""

    result = runner.invoke(cli.main, ["search", "--case-sensitive", str(repo), "Silent"])
    assert result.output == f"{'str':<15}  Silent Threat Reborn\n"


def test_versions(runner, repo):
    result = runner.invoke(cli.main, ["versions", str(repo), "MVPS"])
    assert result.output.splitlines() == ["4.5.1", "4.5.0"]


def test_json_latest_and_specific(runner, repo):
    result = runner.invoke(cli.main, ["json", str(repo), "MVPS"])
    assert json.loads(result.output)["version"] == "4.5.1"

    result = runner.invoke(cli.main, ["json", str(repo), "MVPS", "4.5.0"])
    assert json.loads(result.output)["version"] == "4.5.0"


def test_json_not_found(runner, repo):
    result = runner.invoke(cli.main, ["json", str(repo), "nope"])
    assert result.exit_code == 0
    assert result.output.strip() == "Not found"


def test_cmdline_and_mod(runner, repo):
    result = runner.invoke(cli.main, ["cmdline", str(repo), "MVPS"])
    assert result.output.strip() == "-nomotiondebris -ship_choice_3d"

    result = runner.invoke(cli.main, ["mod", str(repo), "MVPS", "4.5.0"])
    assert result.output.strip() == "-mod MVPS,FSO"


def test_sha256sum(runner, repo):
    result = runner.invoke(cli.main, ["sha256sum", str(repo), "str"])
    assert result.output.strip() == f"{'aa' * 32} str_core.7z"


def test_dlsize(runner, repo):
    result = runner.invoke(cli.main, ["dlsize", str(repo), "str"])
    assert result.exit_code == 0, result.output
    assert "TOTAL" in result.output
    assert "1000" in result.output


def test_query_missing_database(tmp_path, runner):
    result = runner.invoke(cli.main, ["list", str(tmp_path / "missing.db")])
    assert result.exit_code == 1
    assert "File not found" in result.output


def test_web_rejects_bad_port(runner, repo, monkeypatch):
    monkeypatch.setenv("PORT", "not-a-port")
    result = runner.invoke(cli.main, ["web", str(repo)])
    assert result.exit_code == 1
    assert "PORT" in result.output


def test_web_case_sensitive_flag(runner, repo, monkeypatch):
    started = []
    monkeypatch.delenv("BIND", raising=False)
    monkeypatch.delenv("PORT", raising=False)
    monkeypatch.setattr(
        "neb_repo.web.create_and_run",
        lambda store, config: started.append(store.case_sensitive_search),
    )

    result = runner.invoke(cli.main, ["web", str(repo)])
    assert result.exit_code == 0, result.output
    result = runner.invoke(cli.main, ["web", "--case-sensitive", str(repo)])
    assert result.exit_code == 0, result.output
    assert started == [False, True]


def test_fetch_already_current(tmp_path, runner, monkeypatch):
    calls = []

    def fake_fetch(json_path, url):
        calls.append((json_path, url))
        return False

    monkeypatch.setattr(cli, "fetch_catalog", fake_fetch)
    result = runner.invoke(
        cli.main, ["--url", "https://example.invalid/r.json", "fetch", str(tmp_path / "repo.json")]
    )

    assert result.exit_code == 0, result.output
    assert "Already most recent version." in result.output
    assert calls == [(tmp_path / "repo.json", "https://example.invalid/r.json")]


def test_fetch_update(tmp_path, runner, monkeypatch, make_entry):
    def fake_fetch(json_path, url):
        json_path.write_text(json.dumps({"mods": [make_entry("A", "1.0")]}))
        return True

    monkeypatch.setattr(cli, "fetch_catalog", fake_fetch)
    db_path = tmp_path / "repo.db"
    result = runner.invoke(
        cli.main, ["fetch-update", str(db_path), str(tmp_path / "repo.json")]
    )

    assert result.exit_code == 0, result.output
    result = runner.invoke(cli.main, ["versions", str(db_path), "A"])
    assert result.output.strip() == "1.0"
