"""Tests for starter collections and duplication."""

import pytest

from docbase.domain.entities.collection import FieldType, ViewType
from docbase.domain.services.collection_templates import (
    create_collection,
    duplicate_collection,
    is_tasks_name,
)


class TestTemplates:
    """Test template selection and content."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Tasks", True),
            ("my task list", True),
            ("TASK", True),
            ("Multitasking", False),
            ("Projects", False),
        ],
    )
    def test_is_tasks_name(self, name, expected):
        assert is_tasks_name(name) is expected

    def test_default_template(self):
        collection = create_collection("Reading list")

        assert collection.name == "Reading list"
        assert [(field.name, field.type) for field in collection.schema] == [
            ("Title", FieldType.TEXT),
            ("Status", FieldType.STATUS),
        ]
        assert collection.schema[1].options == ["Not started", "In progress", "Done"]
        board = collection.views[1]
        assert [view.name for view in collection.views] == ["All Items", "Kanban"]
        assert board.type == ViewType.KANBAN
        assert board.group_by == collection.schema[1].id
        assert collection.records == []

    def test_task_template(self):
        collection = create_collection("Team tasks")
        fields = {field.name: field for field in collection.schema}

        assert list(fields) == [
            "Title",
            "Status",
            "Priority",
            "Due Date",
            "Effort",
            "Blocked",
            "Project",
        ]
        assert fields["Priority"].options == ["Low", "Medium", "High"]
        assert fields["Project"].type == FieldType.RELATION
        assert fields["Project"].relation.target_collection_id is None

        table, board, calendar = collection.views
        assert table.sort[0].field_id == fields["Due Date"].id
        assert board.group_by == fields["Status"].id
        assert calendar.type == ViewType.CALENDAR
        assert calendar.group_by == fields["Due Date"].id

    def test_ids_unique(self):
        collection = create_collection("Tasks")
        ids = [collection.id] + [f.id for f in collection.schema] + [v.id for v in collection.views]
        assert len(ids) == len(set(ids))


class TestDuplicateCollection:
    """Test collection duplication."""

    def test_new_ids_and_name(self, tasks):
        duplicate = duplicate_collection(tasks)

        assert duplicate.id != tasks.id
        assert duplicate.name == "Tasks (Copy)"
        assert [f.id for f in duplicate.schema] == [f.id for f in tasks.schema]
        assert {v.id for v in duplicate.views}.isdisjoint({v.id for v in tasks.views})
        assert {r.id for r in duplicate.records}.isdisjoint({r.id for r in tasks.records})

    def test_values_copied(self, tasks):
        duplicate = duplicate_collection(tasks)
        duplicate.records[0].get("t_project").append("p2")
        duplicate.views[1].group_by = "t_title"
        duplicate.schema[1].options.append("Blocked")

        assert duplicate.records[0].get("t_title") == "Design"
        assert tasks.records[0].get("t_project") == ["p1"]
        assert tasks.views[1].group_by == "t_status"
        assert tasks.schema[1].options == ["Not started", "In progress", "Done"]
