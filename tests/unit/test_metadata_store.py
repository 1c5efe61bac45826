"""Tests for rqm.metadata.store module."""

import json
import re

import pytest
import yaml

from rqm.core.errors import MetadataError
from rqm.core.models import Requirement, RequirementConfig
from rqm.metadata import MetadataStore, ProjectConfig, hash_summary, kebab_case
from rqm.metadata.store import load_project_config


class TestKebabCase:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Hello World", "hello-world"),
            ("User Authentication System", "user-authentication-system"),
            ("Multiple   Spaces", "multiple-spaces"),
            ("Special!@#Characters", "special-characters"),
            ("  leading and trailing  ", "leading-and-trailing"),
            ("already-kebab", "already-kebab"),
            ("Test-Case", "test-case"),
            ("", ""),
        ],
    )
    def test_conversion(self, text, expected):
        assert kebab_case(text) == expected

    def test_no_empty_segments(self):
        key = kebab_case("a -- b !! c")
        assert "--" not in key
        assert not key.startswith("-") and not key.endswith("-")


class TestHashSummary:
    def test_deterministic(self):
        assert hash_summary("Login") == hash_summary("Login")

    def test_url_safe_without_padding(self):
        value = hash_summary("Login")
        assert re.fullmatch(r"[A-Za-z0-9_-]+", value)
        assert len(value) == 43

    def test_case_sensitive(self):
        assert hash_summary("Login") != hash_summary("login")

    def test_nfc_normalized(self):
        assert hash_summary("caf\u00e9") == hash_summary("cafe\u0301")


class TestProjectConfig:
    def test_allocate_id_formats_and_advances(self):
        config = ProjectConfig(project_prefix="AUTH", next_id=7)
        assert config.allocate_id() == "AUTH-007"
        assert config.next_id == 8

    def test_wide_sequence_not_truncated(self):
        assert ProjectConfig(next_id=1234).allocate_id() == "REQ-1234"

    def test_load_rejects_bad_next_id(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("project_prefix: REQ\nnext_id: zero\n")
        with pytest.raises(MetadataError, match="next_id"):
            load_project_config(path)

    def test_load_rejects_missing_field(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("project_prefix: REQ\n")
        with pytest.raises(MetadataError, match="missing field"):
            load_project_config(path)


class TestMetadataStore:
    def test_init_writes_config(self, tmp_path):
        root = tmp_path / "store"
        store = MetadataStore.init(root, "TEST")
        assert store.project_config == ProjectConfig(project_prefix="TEST", next_id=1)
        data = yaml.safe_load((root / "config.yml").read_text())
        assert data == {"project_prefix": "TEST", "next_id": 1}

    def test_open_without_config_uses_defaults(self, tmp_path):
        store = MetadataStore.open(tmp_path)
        assert store.project_config == ProjectConfig(project_prefix="REQ", next_id=1)

    def test_open_malformed_config(self, tmp_path):
        (tmp_path / "config.yml").write_text("project_prefix: [unclosed\n")
        with pytest.raises(MetadataError):
            MetadataStore.open(tmp_path)

    def test_sequential_ids(self, tmp_path):
        store = MetadataStore.init(tmp_path, "TEST")
        first = store.get_or_create_metadata(Requirement("First"))
        second = store.get_or_create_metadata(Requirement("Second"))
        assert first.generated_id == "TEST-001"
        assert second.generated_id == "TEST-002"
        assert first.uuid != second.uuid

    def test_counter_persisted_after_allocation(self, tmp_path):
        store = MetadataStore.init(tmp_path, "TEST")
        store.get_or_create_metadata(Requirement("First"))
        assert MetadataStore.open(tmp_path).project_config.next_id == 2

    def test_record_file_written(self, tmp_path):
        store = MetadataStore.init(tmp_path, "TEST")
        meta = store.get_or_create_metadata(Requirement("User Login"))
        path = tmp_path / ".metadata" / "user-login.json"
        assert store.record_path("User Login") == path
        data = json.loads(path.read_text())
        assert data["uuid"] == str(meta.uuid)
        assert data["generated_id"] == "TEST-001"
        assert data["summary"] == "User Login"
        assert data["summary_hash"] == hash_summary("User Login")

    def test_stable_across_reopen(self, tmp_path):
        store = MetadataStore.init(tmp_path, "TEST")
        original = store.get_or_create_metadata(Requirement("Stable"))

        reopened = MetadataStore.open(tmp_path)
        again = reopened.get_or_create_metadata(Requirement("Stable"))
        assert again.uuid == original.uuid
        assert again.generated_id == original.generated_id
        assert reopened.project_config.next_id == 2

    def test_cache_returns_same_record(self, tmp_path):
        store = MetadataStore.init(tmp_path, "TEST")
        first = store.get_or_create_metadata(Requirement("Cached"))
        assert store.get_or_create_metadata(Requirement("Cached")) is first

    def test_summary_change_refreshes_hash(self, tmp_path):
        store = MetadataStore.init(tmp_path, "TEST")
        original = store.get_or_create_metadata(Requirement("Hello World"))

        reopened = MetadataStore.open(tmp_path)
        changed = reopened.get_or_create_metadata(Requirement("hello world"))
        assert changed.uuid == original.uuid
        assert changed.generated_id == original.generated_id
        assert changed.summary == "hello world"
        assert changed.summary_hash == hash_summary("hello world")
        assert changed.updated_at >= original.updated_at
        assert changed.created_at == original.created_at

        on_disk = json.loads((tmp_path / ".metadata" / "hello-world.json").read_text())
        assert on_disk["summary"] == "hello world"

    def test_malformed_record(self, tmp_path):
        store = MetadataStore.init(tmp_path, "TEST")
        bad = tmp_path / ".metadata" / "broken.json"
        bad.parent.mkdir(parents=True, exist_ok=True)
        bad.write_text("{not json")
        with pytest.raises(MetadataError) as exc_info:
            store.get_or_create_metadata(Requirement("Broken"))
        assert exc_info.value.path == bad

    def test_record_missing_field(self, tmp_path):
        store = MetadataStore.init(tmp_path, "TEST")
        bad = tmp_path / ".metadata" / "partial.json"
        bad.parent.mkdir(parents=True, exist_ok=True)
        bad.write_text(json.dumps({"uuid": "not-a-uuid", "generated_id": "TEST-001"}))
        with pytest.raises(MetadataError, match="missing field 'summary_hash'"):
            store.get_or_create_metadata(Requirement("Partial"))

    def test_record_bad_uuid(self, tmp_path):
        store = MetadataStore.init(tmp_path, "TEST")
        record = store.get_or_create_metadata(Requirement("Odd")).to_dict()
        record["uuid"] = "not-a-uuid"
        (tmp_path / ".metadata" / "odd.json").write_text(json.dumps(record))
        with pytest.raises(MetadataError, match="UUID"):
            MetadataStore.open(tmp_path).get_or_create_metadata(Requirement("Odd"))

    def test_failed_record_write_does_not_consume_id(self, tmp_path):
        store = MetadataStore.init(tmp_path, "P")
        blocker = tmp_path / ".metadata"
        blocker.write_text("not a directory")

        with pytest.raises(OSError):
            store.get_or_create_metadata(Requirement("First"))
        assert store.project_config.next_id == 1
        assert yaml.safe_load((tmp_path / "config.yml").read_text())["next_id"] == 1

        blocker.unlink()
        assert store.get_or_create_metadata(Requirement("First")).generated_id == "P-001"
        assert store.get_or_create_metadata(Requirement("Second")).generated_id == "P-002"

    def test_failed_config_save_removes_record(self, tmp_path, monkeypatch):
        store = MetadataStore.init(tmp_path, "P")

        def fail():
            raise OSError("disk full")

        monkeypatch.setattr(store, "save_config", fail)
        with pytest.raises(OSError, match="disk full"):
            store.get_or_create_metadata(Requirement("First"))
        assert store.project_config.next_id == 1
        assert not (tmp_path / ".metadata" / "first.json").exists()

        monkeypatch.undo()
        assert store.get_or_create_metadata(Requirement("First")).generated_id == "P-001"

    def test_get_generated_id(self, tmp_path):
        store = MetadataStore.init(tmp_path, "ID")
        assert store.get_generated_id(Requirement("Alpha")) == "ID-001"
        assert store.get_generated_id(Requirement("Alpha")) == "ID-001"

    def test_assign_ids_in_document_order(self, tmp_path):
        store = MetadataStore.init(tmp_path, "DOC")
        config = RequirementConfig(
            version="1.0",
            requirements=[
                Requirement("Parent", requirements=[Requirement("Child")]),
                Requirement("Sibling"),
            ],
        )
        assigned = store.assign_ids(config)
        assert list(assigned) == ["Parent", "Child", "Sibling"]
        assert [m.generated_id for m in assigned.values()] == ["DOC-001", "DOC-002", "DOC-003"]
