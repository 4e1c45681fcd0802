"""Tests for code-first schema definitions and merge logic."""

import pytest

from whatnow.core.schema import (
    COLLECTIONS,
    USERS_COLLECTION_ID,
    _get_collection_schema,
    _get_rules_to_update,
    _merge_fields,
)


@pytest.mark.unit
class TestCollectionSchemas:
    def test_every_collection_has_a_schema(self):
        for name in COLLECTIONS:
            assert _get_collection_schema(collection_name=name)["name"] == name

    def test_completed_tasks_are_append_only(self):
        schema = _get_collection_schema(collection_name="completed_tasks")

        assert schema["updateRule"] is None
        assert schema["deleteRule"] is None

    def test_task_levels_are_constrained(self):
        fields = {f["name"]: f for f in _get_collection_schema(collection_name="tasks")["fields"]}

        assert fields["energy"]["values"] == ["low", "medium", "high"]
        assert fields["social"]["values"] == ["low", "medium", "high"]
        assert fields["user_id"]["collectionId"] == USERS_COLLECTION_ID

    def test_group_relation_uses_resolved_collection_id(self):
        schema = _get_collection_schema(collection_name="group_members", collection_ids={"groups": "pbc_123"})
        group_field = next(f for f in schema["fields"] if f["name"] == "group_id")

        assert group_field["collectionId"] == "pbc_123"

    def test_groups_come_before_memberships(self):
        assert COLLECTIONS.index("groups") < COLLECTIONS.index("group_members")


@pytest.mark.unit
class TestMergeFields:
    def test_keeps_unknown_existing_fields_and_adds_missing(self):
        schema = {"fields": [{"name": "name", "type": "text"}, {"name": "time", "type": "number"}]}
        current = {"fields": [{"name": "id", "type": "text", "system": True}, {"name": "name", "type": "editor"}]}

        merged, updated, added = _merge_fields(schema, current)

        assert [f["name"] for f in merged] == ["id", "name", "time"]
        assert merged[1]["type"] == "text"
        assert updated == ["name"]
        assert added == ["time"]


@pytest.mark.unit
class TestRulesToUpdate:
    def test_only_changed_rules_are_returned(self):
        schema = {"listRule": "user_id = @request.auth.id", "viewRule": "", "deleteRule": None}
        current = {"listRule": "", "viewRule": "", "deleteRule": None}

        assert _get_rules_to_update(schema, current) == {"listRule": "user_id = @request.auth.id"}
