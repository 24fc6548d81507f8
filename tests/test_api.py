"""
Tests for the Archive wrapper: colors, materialized values, persistence.
"""

import json

import pytest

from archivum.api import Archive
from archivum.config import StoreConfig
from archivum.errors import DuplicatePath, InvalidPath, MalformedDocument, NotFound
from archivum.repository import Repository
from archivum.types import BookmarkData, FileData, Tag


class TestColors:
    def test_default_color_is_gray(self):
        ar = Archive()
        tag = ar.upsert_tag(1, ["work"])
        assert tag == Tag(1, ("work",), "gray")
        assert ar.get_tag(1).color == "gray"

    def test_custom_default(self):
        ar = Archive(default_color="blue")
        assert ar.upsert_tag(1, ["work"]).color == "blue"

    def test_unknown_default_rejected(self):
        with pytest.raises(ValueError):
            Archive(default_color="mauve")

    def test_color_tracked_per_tag(self):
        ar = Archive()
        ar.upsert_tag(1, ["work"], color="red")
        ar.upsert_tag(2, ["home"])
        assert [t.color for t in ar.get_all_tags()] == ["red", "gray"]

    def test_rename_without_color_keeps_color(self):
        ar = Archive()
        ar.upsert_tag(1, ["work"], color="red")
        assert ar.upsert_tag(1, ["job"]).color == "red"

    def test_invalid_color_changes_nothing(self):
        ar = Archive()
        with pytest.raises(ValueError):
            ar.upsert_tag(1, ["work"], color="mauve")
        assert ar.get_all_tags() == []

    def test_set_color_on_missing_tag(self):
        with pytest.raises(NotFound):
            Archive().set_tag_color(5, "red")

    def test_delete_forgets_color(self):
        ar = Archive()
        ar.upsert_tag(1, ["work"], color="red")
        ar.delete_tag(1)
        assert ar.upsert_tag(1, ["work"]).color == "gray"

    def test_colors_not_in_document(self):
        ar = Archive()
        ar.upsert_tag(1, ["work"], color="red")
        assert ar.to_document()["tags"] == [{"id": 1, "path": ["work"]}]
        assert Archive.from_json(ar.to_json()).get_tag(1).color == "gray"

    def test_node_tags_carry_colors(self):
        ar = Archive()
        ar.upsert_tag(1, ["work"], color="green")
        ar.upsert_node(1, FileData("a.txt"), "d", "d")
        ar.tag_node(1, 1)
        assert ar.get_node(1).tags == [Tag(1, ("work",), "green")]
        assert ar.get_nodes_with_tag(1)[0].tags[0].color == "green"


class TestTags:
    def test_queries_return_tags(self, seeded):
        ar = Archive(seeded)
        assert ar.get_tag_by_path(["work", "projects"]).id == 2
        assert ar.get_tag_by_path(["missing"]) is None
        assert [t.id for t in ar.get_child_tags(1)] == [2]
        assert [t.id for t in ar.get_descendant_tags(1)] == [2, 3]

    def test_ensure_tag_path_creates_once(self):
        ar = Archive()
        first = ar.ensure_tag_path(["work", "projects"])
        second = ar.ensure_tag_path(["work", "projects"])
        assert first == second
        assert len(ar.get_all_tags()) == 1
        # ancestors are not created
        assert ar.get_tag_by_path(["work"]) is None

    def test_ensure_tag_path_sets_color_on_existing(self):
        ar = Archive()
        ar.ensure_tag_path(["work"])
        assert ar.ensure_tag_path(["work"], color="purple").color == "purple"

    def test_ensure_tag_path_invalid_keeps_counter(self):
        ar = Archive()
        with pytest.raises(InvalidPath):
            ar.ensure_tag_path([])
        assert ar.get_next_tag_id() == 1

    def test_duplicate_path(self, seeded):
        with pytest.raises(DuplicatePath):
            Archive(seeded).upsert_tag(4, ["work"])


class TestNodes:
    def test_upsert_returns_node_with_tags(self, seeded):
        ar = Archive(seeded)
        node = ar.upsert_node(10, FileData("b.txt", 1), "d", "d")
        assert node.data == FileData("b.txt", 1)
        assert [t.path for t in node.tags] == [("work",), ("work", "projects")]

    def test_discriminant_dropped_before_store(self):
        ar = Archive()
        ar.upsert_node(1, {"type": "bookmark", "Bookmark": {"url": "https://x"}}, "d", "d")
        assert ar.to_document()["nodes"][0]["data"] == {"Bookmark": {"url": "https://x"}}

    def test_to_dict_uses_discriminant(self):
        ar = Archive()
        node = ar.upsert_node(1, BookmarkData("https://x"), "d", "d")
        assert node.to_dict()["data"] == {"type": "bookmark", "Bookmark": {"url": "https://x"}}

    def test_tag_missing_node(self):
        ar = Archive()
        ar.upsert_tag(1, ["work"])
        with pytest.raises(NotFound):
            ar.tag_node(1, 1)

    def test_stats(self, seeded):
        assert Archive(seeded).stats()["associations"] == 3


class TestPersistence:
    def test_open_starts_empty(self, archive, store_config):
        assert not store_config.document_path.exists()
        assert archive.get_all_tags() == []

    def test_save_and_reopen(self, archive, store_config):
        archive.upsert_tag(1, ["work"])
        archive.upsert_node(1, FileData("a.txt", 3), "d1", "d2")
        archive.tag_node(1, 1)
        path = archive.save()
        assert path == store_config.document_path

        with Archive.open(config=store_config) as reopened:
            node = reopened.get_node(1)
            assert node.data == FileData("a.txt", 3)
            assert [t.path for t in node.tags] == [("work",)]
            assert reopened.get_next_node_id() == 2

    def test_save_leaves_no_temp_file(self, archive, store_config):
        archive.save()
        names = sorted(p.name for p in store_config.path.iterdir())
        assert "repository.json.tmp" not in names
        assert "repository.json" in names

    def test_saved_document_is_indented(self, archive, store_config):
        archive.upsert_tag(1, ["work"])
        archive.save()
        text = store_config.document_path.read_text(encoding="utf-8")
        assert "\n  " in text
        assert json.loads(text)["tags"] == [{"id": 1, "path": ["work"]}]

    def test_open_by_store_path(self, tmp_path):
        with Archive.open(tmp_path / "s") as ar:
            assert ar.config.config_path.exists()
            assert ar.config.path == (tmp_path / "s").resolve()
            ar.save()
        assert (tmp_path / "s" / "repository.json").exists()

    def test_failed_save_removes_temp_file(self, archive, store_config, monkeypatch):
        archive.upsert_tag(1, ["work"])
        archive.save()
        archive.upsert_tag(2, ["home"])

        def fail_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("archivum.api.os.replace", fail_replace)
        with pytest.raises(OSError):
            archive.save()
        names = {p.name for p in store_config.path.iterdir()}
        assert "repository.json.tmp" not in names
        saved = json.loads(store_config.document_path.read_text(encoding="utf-8"))
        assert [t["id"] for t in saved["tags"]] == [1]

    def test_ops_log_written(self, archive, store_config):
        archive.save()
        archive.close()
        assert (store_config.path / "archivum-ops.log").exists()

    def test_open_malformed_document(self, store_config):
        store_config.path.mkdir(parents=True)
        store_config.document_path.write_text("{}", encoding="utf-8")
        with pytest.raises(MalformedDocument):
            Archive.open(config=store_config)

    def test_save_without_config(self):
        with pytest.raises(RuntimeError):
            Archive().save()

    def test_replace_repository_resets_colors(self):
        ar = Archive()
        ar.upsert_tag(1, ["work"], color="red")
        other = Repository()
        other.upsert_tag(1, ["home"])
        ar.replace_repository(other)
        assert ar.get_tag(1) == Tag(1, ("home",), "gray")

    def test_default_color_from_config(self, tmp_path):
        config = StoreConfig(path=tmp_path / "store", default_tag_color="yellow")
        with Archive.open(config=config) as ar:
            assert ar.upsert_tag(1, ["x"]).color == "yellow"
