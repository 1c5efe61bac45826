"""Tests for rqm.core.models module."""

import logging

from rqm.core.models import (
    OwnerReference,
    PersonAlias,
    Priority,
    Reference,
    Requirement,
    RequirementConfig,
    Status,
)


class TestOwnerReference:
    def test_email(self):
        owner = OwnerReference("test@example.com")
        assert owner.is_email
        assert not owner.is_github

    def test_github_handle(self):
        owner = OwnerReference("@username")
        assert not owner.is_email
        assert owner.is_github

    def test_plain_alias(self):
        owner = OwnerReference("alice")
        assert not owner.is_email
        assert not owner.is_github

    def test_str(self):
        assert str(OwnerReference("alice")) == "alice"


class TestRequirement:
    def test_new_with_summary_only(self):
        req = Requirement("Test Requirement")
        assert req.summary == "Test Requirement"
        assert req.description is None
        assert req.requirements == []
        assert req.tags == []

    def test_id_prefers_name(self):
        assert Requirement("Summary", name="REQ-1").id == "REQ-1"
        assert Requirement("Summary").id == "Summary"

    def test_flatten_parent_before_child(self):
        parent = Requirement("Parent", requirements=[Requirement("Child")])
        assert [r.summary for r in parent.flatten()] == ["Parent", "Child"]

    def test_flatten_depth_first_in_child_order(self):
        tree = Requirement(
            "Root",
            requirements=[
                Requirement("A", requirements=[Requirement("A1"), Requirement("A2")]),
                Requirement("B"),
            ],
        )
        assert [r.summary for r in tree.flatten()] == ["Root", "A", "A1", "A2", "B"]

    def test_flatten_does_not_expand_references(self):
        parent = Requirement("Parent", requirements=[Reference("Elsewhere"), Requirement("Child")])
        assert [r.summary for r in parent.flatten()] == ["Parent", "Child"]

    def test_child_summaries_include_references(self):
        parent = Requirement("Parent", requirements=[Reference("Elsewhere"), Requirement("Child")])
        assert parent.child_summaries() == ["Elsewhere", "Child"]

    def test_to_dict_omits_unset_fields(self):
        assert Requirement("Only summary").to_dict() == {"summary": "Only summary"}

    def test_to_dict_full(self):
        req = Requirement(
            "Login",
            name="AUTH-1",
            owner=OwnerReference("@dev"),
            requirements=[Reference("Other"), Requirement("Inline")],
            tags=["security"],
            priority=Priority.HIGH,
            status=Status.DRAFT,
        )
        assert req.to_dict() == {
            "summary": "Login",
            "name": "AUTH-1",
            "owner": "@dev",
            "requirements": ["Other", {"summary": "Inline"}],
            "tags": ["security"],
            "priority": "high",
            "status": "draft",
        }


class TestRequirementConfig:
    def test_all_requirements_walks_every_top_level_tree(self):
        config = RequirementConfig(
            version="1.0",
            requirements=[
                Requirement("One", requirements=[Requirement("One.a")]),
                Requirement("Two"),
            ],
        )
        assert [r.summary for r in config.all_requirements()] == ["One", "One.a", "Two"]

    def test_alias_map(self):
        config = RequirementConfig(
            version="1.0",
            aliases=[PersonAlias(alias="john", name="John Doe", email="john@example.com")],
        )
        aliases = config.alias_map()
        assert "john" in aliases
        assert aliases["john"].email == "john@example.com"

    def test_alias_map_last_duplicate_wins(self, caplog):
        config = RequirementConfig(
            version="1.0",
            aliases=[PersonAlias(alias="sam", name="First"), PersonAlias(alias="sam", name="Second")],
        )
        with caplog.at_level(logging.WARNING, logger="rqm"):
            aliases = config.alias_map()
        assert aliases["sam"].name == "Second"
        assert "Duplicate alias 'sam'" in caplog.text

    def test_to_dict_skips_empty_aliases(self):
        config = RequirementConfig(version="1.0", requirements=[Requirement("X")])
        assert config.to_dict() == {"version": "1.0", "requirements": [{"summary": "X"}]}

    def test_to_dict_includes_aliases(self):
        config = RequirementConfig(version="2", aliases=[PersonAlias(alias="a", github="octo")])
        assert config.to_dict()["aliases"] == [{"alias": "a", "github": "octo"}]
