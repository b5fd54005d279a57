"""Starter collections and collection duplication."""

import copy
import re

from docbase.domain.entities.collection import (
    STATUS_OPTIONS,
    Collection,
    Field,
    FieldType,
    Record,
    RelationConfig,
    SortSpec,
    View,
    ViewType,
)
from docbase.domain.services.record_service import generate_id

TASKS_NAME_PATTERN = re.compile(r"\btasks?\b", re.IGNORECASE)

PRIORITY_OPTIONS = ["Low", "Medium", "High"]


def is_tasks_name(name: str) -> bool:
    return bool(TASKS_NAME_PATTERN.search(name.strip()))


def default_template(name: str) -> Collection:
    """A title and a status field, shown as a table and a status board."""
    title = Field(id=generate_id(), name="Title", type=FieldType.TEXT)
    status = Field(
        id=generate_id(), name="Status", type=FieldType.STATUS, options=list(STATUS_OPTIONS)
    )
    return Collection(
        id=generate_id(),
        name=name,
        schema=[title, status],
        views=[
            View(id=generate_id(), name="All Items", type=ViewType.TABLE),
            View(id=generate_id(), name="Kanban", type=ViewType.KANBAN, group_by=status.id),
        ],
    )


def task_template(name: str) -> Collection:
    """A task tracker with priority, due dates, effort and a project link."""
    title = Field(id=generate_id(), name="Title", type=FieldType.TEXT)
    status = Field(
        id=generate_id(), name="Status", type=FieldType.STATUS, options=list(STATUS_OPTIONS)
    )
    priority = Field(
        id=generate_id(), name="Priority", type=FieldType.SELECT, options=list(PRIORITY_OPTIONS)
    )
    due_date = Field(id=generate_id(), name="Due Date", type=FieldType.DATE)
    effort = Field(id=generate_id(), name="Effort", type=FieldType.NUMBER)
    blocked = Field(id=generate_id(), name="Blocked", type=FieldType.CHECKBOX)
    project = Field(
        id=generate_id(), name="Project", type=FieldType.RELATION, relation=RelationConfig()
    )
    return Collection(
        id=generate_id(),
        name=name,
        schema=[title, status, priority, due_date, effort, blocked, project],
        views=[
            View(
                id=generate_id(),
                name="All Tasks",
                type=ViewType.TABLE,
                sort=[SortSpec(field_id=due_date.id)],
            ),
            View(id=generate_id(), name="By Status", type=ViewType.KANBAN, group_by=status.id),
            View(id=generate_id(), name="Calendar", type=ViewType.CALENDAR, group_by=due_date.id),
        ],
    )


def create_collection(name: str) -> Collection:
    """Create an empty collection named ``name``.

    Names mentioning tasks ("Tasks", "Team task list") get the task
    template; everything else gets the default one.
    """
    if is_tasks_name(name):
        return task_template(name)
    return default_template(name)


def duplicate_collection(collection: Collection) -> Collection:
    """Copy a collection under new collection, record and view ids.

    Fields keep their ids so record values and view references stay valid.
    """
    return Collection(
        id=generate_id(),
        name=f"{collection.name} (Copy)",
        schema=[field.copy() for field in collection.schema],
        views=[_copy_view(view) for view in collection.views],
        records=[
            Record(id=generate_id(), values=_copy_values(record), body=record.body)
            for record in collection.records
        ],
    )


def _copy_view(view: View) -> View:
    duplicate = copy.deepcopy(view)
    duplicate.id = generate_id()
    return duplicate


def _copy_values(record: Record) -> dict:
    return {
        field_id: list(value) if isinstance(value, list) else value
        for field_id, value in record.values.items()
    }
