"""
Tests for the archivum CLI.

Each command opens the store, runs, and saves, so state carries from one
invocation to the next through the store directory.
"""

import json

import pytest
from typer.testing import CliRunner

from archivum.cli import app


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def store(tmp_path, monkeypatch):
    """Store directory; the error log lands here too."""
    path = tmp_path / "store"
    monkeypatch.setenv("ARCHIVUM_STORE_PATH", str(path))
    return path


@pytest.fixture
def run(runner, store):
    def _run(*args):
        return runner.invoke(app, ["--store", str(store), *args])
    return _run


class TestTags:
    def test_add_and_list(self, run):
        assert run("add-tag", "work").exit_code == 0
        result = run("add-tag", "work/projects")
        assert result.exit_code == 0
        assert "work/projects" in result.output

        result = run("--json", "tags")
        assert result.exit_code == 0
        tags = json.loads(result.output)
        assert [(t["id"], t["path"], t["color"]) for t in tags] == [
            (1, ["work"], "gray"),
            (2, ["work", "projects"], "gray"),
        ]

    def test_add_existing_path_reuses_tag(self, run):
        run("add-tag", "work")
        run("add-tag", "work")
        assert len(json.loads(run("--json", "tags").output)) == 1

    def test_rename_with_id(self, run):
        run("add-tag", "work")
        assert run("add-tag", "job", "--id", "1").exit_code == 0
        assert json.loads(run("--json", "tags").output)[0]["path"] == ["job"]

    def test_duplicate_path_is_error(self, run, store):
        run("add-tag", "work")
        result = run("add-tag", "work", "--id", "5")
        assert result.exit_code == 1
        assert "Error:" in result.output
        assert (store / "archivum-errors.log").exists()

    def test_empty_segment_is_error(self, run):
        result = run("add-tag", "work//projects")
        assert result.exit_code == 1
        assert run("--json", "tags").output.strip() == "[]"

    def test_children(self, run):
        run("add-tag", "work")
        run("add-tag", "work/projects")
        run("add-tag", "work/projects/archivum")
        direct = json.loads(run("--json", "children", "1").output)
        assert [t["id"] for t in direct] == [2]
        every = json.loads(run("--json", "children", "1", "--all").output)
        assert [t["id"] for t in every] == [2, 3]


class TestNodes:
    def test_add_file_and_show(self, run):
        result = run("add-file", "a.txt", "--size", "5")
        assert result.exit_code == 0
        assert "a.txt" in result.output

        node = json.loads(run("--json", "show", "1").output)[0]
        assert node["data"] == {"type": "file", "File": {"filename": "a.txt", "size": 5}}

    def test_add_bookmark(self, run):
        run("add-bookmark", "https://example.com", "--title", "Example")
        result = run("nodes")
        assert result.exit_code == 0
        assert "Example <https://example.com>" in result.output

    def test_negative_size_rejected(self, run):
        assert run("add-file", "a.txt", "--size", "-1").exit_code != 0

    def test_show_missing(self, run):
        result = run("show", "99")
        assert result.exit_code == 1
        assert "Not found: node 99" in result.output

    def test_rm(self, run):
        run("add-file", "a.txt")
        assert "Deleted node 1" in run("rm", "1").output
        assert "No node 1" in run("rm", "1").output


class TestTagging:
    @pytest.fixture
    def populated(self, run):
        run("add-tag", "work")
        run("add-tag", "home")
        run("add-file", "a.txt", "--size", "5")
        run("add-bookmark", "https://x")
        return run

    def test_tag_and_tagged(self, populated):
        run = populated
        assert run("tag", "1", "1").exit_code == 0
        assert run("tag", "2", "1").exit_code == 0
        nodes = json.loads(run("--json", "tagged", "1").output)
        assert [n["id"] for n in nodes] == [1, 2]
        assert nodes[0]["tags"][0]["path"] == ["work"]

    def test_tag_missing_tag(self, populated):
        result = populated("tag", "1", "99")
        assert result.exit_code == 1
        assert "Tag not found: 99" in result.output

    def test_untag(self, populated):
        run = populated
        run("tag", "1", "1")
        assert "Untagged node 1" in run("untag", "1", "1").output
        assert "was not tagged" in run("untag", "1", "1").output

    def test_rm_tag_detaches(self, populated):
        run = populated
        run("tag", "1", "1")
        run("tag", "1", "2")
        assert run("rm-tag", "1").exit_code == 0
        node = json.loads(run("--json", "show", "1").output)[0]
        assert [t["id"] for t in node["tags"]] == [2]
        assert json.loads(run("--json", "tagged", "1").output) == []


class TestDocument:
    def test_info(self, run):
        run("add-tag", "work")
        info = json.loads(run("--json", "info").output)
        assert info["tags"] == 1
        assert info["next_tag_id"] == 2

    def test_export_import(self, run, runner, tmp_path):
        run("add-tag", "work")
        run("add-file", "a.txt")
        run("tag", "1", "1")
        exported = run("export")
        assert exported.exit_code == 0
        doc_file = tmp_path / "export.json"
        doc_file.write_text(exported.output, encoding="utf-8")

        other = tmp_path / "other"
        result = runner.invoke(app, ["--store", str(other), "import", str(doc_file)])
        assert result.exit_code == 0
        assert "Imported 1 tags, 1 nodes" in result.output
        node = json.loads(
            runner.invoke(app, ["--store", str(other), "--json", "show", "1"]).output
        )[0]
        assert node["tags"][0]["path"] == ["work"]

    def test_import_malformed(self, run, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text('{"tags": []}', encoding="utf-8")
        result = run("import", str(bad))
        assert result.exit_code == 1
        assert "Error:" in result.output


class TestErrorLog:
    def test_error_log_follows_store_option(self, runner, tmp_path, monkeypatch):
        """Without ARCHIVUM_STORE_PATH, errors are logged in the --store directory."""
        monkeypatch.delenv("ARCHIVUM_STORE_PATH", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        store = tmp_path / "store"
        runner.invoke(app, ["--store", str(store), "add-tag", "work"])
        result = runner.invoke(app, ["--store", str(store), "add-tag", "work", "--id", "5"])
        assert result.exit_code == 1
        assert (store / "archivum-errors.log").exists()
        assert not (tmp_path / "home" / ".archivum" / "archivum-errors.log").exists()
