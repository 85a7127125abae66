"""
Tests for the mobi-header CLI: JSON output, toggles, config, error exits.
"""

from __future__ import annotations

import json

import pytest

from mobiheader import cli

from builders import build_book


@pytest.fixture(autouse=True)
def no_user_config(tmp_path, monkeypatch):
    """Never read the developer's real ~/.mobiheader/config.toml."""
    monkeypatch.setattr(cli, "DEFAULT_CONFIG_PATH", tmp_path / "absent.toml")


@pytest.fixture
def book_path(tmp_path):
    path = tmp_path / "progit.mobi"
    path.write_bytes(build_book(exth=[(100, b"Scott Chacon"), (524, b"en")]))
    return path


def _run(capsys, *argv) -> dict:
    cli.main([str(a) for a in argv])
    return json.loads(capsys.readouterr().out)


# ---------------------------------------------------------------------------
# TestDump
# ---------------------------------------------------------------------------

class TestDump:

    def test_default_output(self, capsys, book_path):
        data = _run(capsys, book_path)["mobi_header"]
        assert data["pdb_header"]["name"] == "Pro_Git"
        assert data["mobi_type"] == "MOBIPOCKET_BOOK"
        assert data["encoding"] == "utf-8"
        assert "records" not in data["pdb_header"]
        assert "full_title" not in data
        labels = [r["label"] for r in data["exth_header"]["records"]]
        assert labels == ["AUTHOR", "LANGUAGE"]

    def test_full_includes_records(self, capsys, book_path):
        data = _run(capsys, "--full", book_path)["mobi_header"]
        assert len(data["pdb_header"]["records"]) == 4

    def test_title(self, capsys, book_path):
        data = _run(capsys, "--title", book_path)["mobi_header"]
        assert data["full_title"] == "Pro_Git"

    def test_indent(self, capsys, book_path):
        cli.main(["--indent", "0", str(book_path)])
        out = capsys.readouterr().out
        assert out.startswith('{\n"mobi_header"')

    def test_non_ascii_escaped(self, capsys, tmp_path):
        path = tmp_path / "uber.mobi"
        path.write_bytes(build_book(exth=[(100, "Jürgen".encode("utf-8"))]))
        cli.main([str(path)])
        out = capsys.readouterr().out
        assert "\\u00fc" in out
        assert json.loads(out)["mobi_header"]["exth_header"]["records"][0]["value"] == "Jürgen"

    def test_absent_values_omitted(self, capsys, tmp_path):
        path = tmp_path / "plain.mobi"
        path.write_bytes(build_book())
        cli.main([str(path)])
        out = capsys.readouterr().out
        assert "null" not in out
        data = json.loads(out)["mobi_header"]
        assert "exth_header" not in data
        assert "last_backup_date" not in data["pdb_header"]
        assert data["pdb_header"]["creation_date"].startswith("2016-01-06")

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--version"])
        assert exc_info.value.code == 0
        assert "mobi-header" in capsys.readouterr().out


# ---------------------------------------------------------------------------
# TestErrors
# ---------------------------------------------------------------------------

class TestErrors:

    def test_decode_error_exits_1(self, capsys, tmp_path):
        path = tmp_path / "bad.mobi"
        path.write_bytes(build_book(palmdoc={"compression": 99}))
        with pytest.raises(SystemExit) as exc_info:
            cli.main([str(path)])
        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert err.startswith("Error: Cannot decode")
        assert "compression type: 99" in err

    def test_truncated_file_exits_1(self, capsys, tmp_path):
        path = tmp_path / "short.mobi"
        path.write_bytes(b"Pro_Git\x00")
        with pytest.raises(SystemExit) as exc_info:
            cli.main([str(path)])
        assert exc_info.value.code == 1
        assert "Truncated input" in capsys.readouterr().err

    def test_missing_file_exits_1(self, capsys, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            cli.main([str(tmp_path / "missing.mobi")])
        assert exc_info.value.code == 1
        assert "Cannot read" in capsys.readouterr().err

    def test_missing_path_argument(self):
        with pytest.raises(SystemExit) as exc_info:
            cli.main([])
        assert exc_info.value.code == 2


# ---------------------------------------------------------------------------
# TestConfig
# ---------------------------------------------------------------------------

class TestConfig:

    def test_defaults_when_missing(self, tmp_path):
        assert cli._load_config(tmp_path / "nope.toml") == cli.DEFAULT_CONFIG

    def test_loads_toml(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text('full = true\nindent = 4\nlog_level = "DEBUG"\n')
        config = cli._load_config(path)
        assert config["full"] is True
        assert config["indent"] == 4
        assert config["log_level"] == "DEBUG"
        assert config["title"] is False

    def test_unknown_keys_ignored(self, tmp_path, caplog):
        path = tmp_path / "config.toml"
        path.write_text('colour = "blue"\ntitle = true\n')
        with caplog.at_level("WARNING", logger="mobiheader.cli"):
            config = cli._load_config(path)
        assert "colour" not in config
        assert config["title"] is True
        assert "unknown config keys" in caplog.text

    def test_invalid_toml_falls_back(self, tmp_path, caplog):
        path = tmp_path / "config.toml"
        path.write_text("full = = true\n")
        with caplog.at_level("WARNING", logger="mobiheader.cli"):
            config = cli._load_config(path)
        assert config == cli.DEFAULT_CONFIG
        assert "Failed to load config" in caplog.text

    def test_config_file_enables_full(self, capsys, tmp_path, book_path):
        path = tmp_path / "config.toml"
        path.write_text("full = true\ntitle = true\n")
        data = _run(capsys, "--config", path, book_path)["mobi_header"]
        assert "records" in data["pdb_header"]
        assert data["full_title"] == "Pro_Git"

    def test_default_config_path_used(self, capsys, tmp_path, book_path, monkeypatch):
        path = tmp_path / "home.toml"
        path.write_text("full = true\n")
        monkeypatch.setattr(cli, "DEFAULT_CONFIG_PATH", path)
        data = _run(capsys, book_path)["mobi_header"]
        assert "records" in data["pdb_header"]
