"""Tests for the lexicon-store command line."""

import json

import pytest

from conftest import raw
from lexicon_store import LexiconStore
from lexicon_store.batch.cli import main


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "words.db"
    with LexiconStore(path) as st:
        st.import_batch([raw("look", pos="verb"), raw("looked", pos="verb"), raw("ability")])
    return path


def run(db_path, *args):
    return main(["--db", str(db_path), *args])


class TestCli:

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_import_file(self, tmp_path, capsys):
        data = tmp_path / "a.json"
        data.write_text(json.dumps([raw("abroad"), raw("-abroad")]), encoding="utf-8")
        assert run(tmp_path / "new.db", "import", str(data)) == 0
        out = capsys.readouterr().out
        assert "Words:    2" in out
        assert "Grouped:  1" in out

    def test_import_directory_with_failures(self, tmp_path, capsys):
        src = tmp_path / "src"
        src.mkdir()
        (src / "a.json").write_text(json.dumps([raw("abroad")]), encoding="utf-8")
        (src / "b.json").write_text("oops", encoding="utf-8")
        assert run(tmp_path / "new.db", "import", str(src)) == 0
        out = capsys.readouterr().out
        assert "Files:    1/2" in out
        assert "[FAILED] b.json" in out

    def test_import_missing_path(self, tmp_path, capsys):
        assert run(tmp_path / "new.db", "import", str(tmp_path / "none.json")) == 1
        assert "[ERROR]" in capsys.readouterr().out

    def test_status(self, tmp_path, capsys):
        (tmp_path / "a.json").write_text("[]", encoding="utf-8")
        assert main(["status", str(tmp_path)]) == 0
        assert "a.json" in capsys.readouterr().out

    def test_search(self, db_path, capsys):
        assert run(db_path, "search", "LOO") == 0
        out = capsys.readouterr().out
        assert "2 word(s)" in out
        assert out.index("looked") < out.index("look\n")

    def test_search_empty_prefix_is_an_error(self, db_path, capsys):
        assert run(db_path, "search", " ") == 1

    def test_assign_root_and_children(self, db_path, capsys):
        assert run(db_path, "assign-root", "looked", "look") == 0
        assert "2 document(s) changed" in capsys.readouterr().out
        assert run(db_path, "children", "look") == 0
        assert "looked" in capsys.readouterr().out
        assert run(db_path, "list") == 0
        assert "  - looked" in capsys.readouterr().out

    def test_assign_root_missing_word(self, db_path, capsys):
        assert run(db_path, "assign-root", "nothing", "look") == 1
        assert "not found" in capsys.readouterr().out

    def test_validate_and_apply(self, db_path, tmp_path, capsys):
        request = tmp_path / "roots.yaml"
        request.write_text("assignments:\n  - word: looked\n    root: look\n")

        assert run(db_path, "validate", str(request)) == 0
        assert "Validation passed!" in capsys.readouterr().out

        assert run(db_path, "apply", str(request), "--dry-run") == 0
        with LexiconStore(db_path) as st:
            assert st.find_by_key("looked").root.key is None

        assert run(db_path, "apply", str(request), "--yes") == 0
        with LexiconStore(db_path) as st:
            assert st.find_by_key("looked").root.key == "look"

    def test_apply_rejects_invalid_request(self, db_path, tmp_path, capsys):
        request = tmp_path / "roots.yaml"
        request.write_text("assignments:\n  - word: nothing\n    root: look\n")
        assert run(db_path, "apply", str(request), "--yes") == 1
        assert "Validation failed" in capsys.readouterr().out

    def test_apply_parse_error(self, db_path, tmp_path, capsys):
        request = tmp_path / "roots.yaml"
        request.write_text("assignments: []\n")
        assert run(db_path, "apply", str(request), "--yes") == 1
        assert "[PARSE ERROR]" in capsys.readouterr().out

    def test_check_and_history(self, db_path, capsys):
        assert run(db_path, "check") == 0
        assert "No problems found." in capsys.readouterr().out
        assert run(db_path, "history", "--word", "look") == 0
        assert "CREATE" in capsys.readouterr().out
