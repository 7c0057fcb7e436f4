"""
Tests for the command-line interface.
"""

import json

import pytest

from ..cli import main
from ..themes import DATA_DIR


class TestCLI:
    def test_themes(self, capsys):
        main(["themes"])
        out = capsys.readouterr().out
        assert "bigtech_worker" in out
        assert "startup" in out

    def test_validate_ok(self, capsys):
        main(["validate", str(DATA_DIR / "startup.json")])
        assert capsys.readouterr().out.strip().endswith("OK")

    def test_validate_broken_theme(self, tmp_path, capsys):
        with open(DATA_DIR / "startup.json", encoding="utf-8") as f:
            document = json.load(f)
        document["starting_deck"].append("ghost")
        path = tmp_path / "broken.json"
        path.write_text(json.dumps(document), encoding="utf-8")

        with pytest.raises(SystemExit) as exc_info:
            main(["validate", str(path)])

        assert exc_info.value.code == 1
        assert "ghost" in capsys.readouterr().out

    def test_validate_missing_file(self, tmp_path):
        with pytest.raises(SystemExit):
            main(["validate", str(tmp_path / "missing.json")])

    def test_simulate(self, capsys):
        """A seeded simulation plays to game over."""
        main(["simulate", "bigtech_worker", "--players", "2", "--seed", "5"])
        out = capsys.readouterr().out
        assert "Game over on turn" in out
        assert "p1:" in out and "p2:" in out

    def test_no_command(self):
        with pytest.raises(SystemExit):
            main([])
