"""Pytest configuration for all tests."""

import pytest

from docbase.core.config import get_settings
from docbase.domain.entities.collection import (
    STATUS_OPTIONS,
    Collection,
    Field,
    FieldType,
    Record,
    RelationConfig,
    RollupConfig,
    View,
    ViewType,
)
from docbase.domain.services.relation_resolver import MappingResolver


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Settings are cached per process; environment patches must not leak between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def projects() -> Collection:
    """Projects collection whose ``p_tasks`` relation mirrors ``tasks.t_project``."""
    return Collection(
        id="projects",
        name="Projects",
        schema=[
            Field(id="p_name", name="Name", type=FieldType.TEXT),
            Field(
                id="p_tasks",
                name="Tasks",
                type=FieldType.RELATION,
                relation=RelationConfig(
                    target_collection_id="tasks", target_relation_field_id="t_project"
                ),
            ),
            Field(
                id="p_task_count",
                name="Task count",
                type=FieldType.ROLLUP,
                rollup=RollupConfig(relation_field_id="p_tasks", aggregation="count"),
            ),
            Field(
                id="p_effort",
                name="Total effort",
                type=FieldType.ROLLUP,
                rollup=RollupConfig(
                    relation_field_id="p_tasks", aggregation="sum", target_field_id="t_effort"
                ),
            ),
        ],
        views=[View(id="v_projects", name="All Projects", type=ViewType.TABLE)],
        records=[
            Record(id="p1", values={"p_name": "Website", "p_tasks": ["t1", "t2"]}),
            Record(id="p2", values={"p_name": "Mobile", "p_tasks": []}),
        ],
    )


@pytest.fixture
def tasks() -> Collection:
    """Tasks collection whose ``t_project`` relation points at ``projects``."""
    return Collection(
        id="tasks",
        name="Tasks",
        schema=[
            Field(id="t_title", name="Title", type=FieldType.TEXT),
            Field(id="t_status", name="Status", type=FieldType.STATUS, options=list(STATUS_OPTIONS)),
            Field(id="t_effort", name="Effort", type=FieldType.NUMBER),
            Field(
                id="t_project",
                name="Project",
                type=FieldType.RELATION,
                relation=RelationConfig(
                    target_collection_id="projects", target_relation_field_id="p_tasks"
                ),
            ),
        ],
        views=[
            View(id="v_tasks", name="All Tasks", type=ViewType.TABLE),
            View(id="v_board", name="Kanban", type=ViewType.KANBAN, group_by="t_status"),
        ],
        records=[
            Record(
                id="t1",
                values={
                    "t_title": "Design",
                    "t_status": "Done",
                    "t_effort": 3,
                    "t_project": ["p1"],
                },
            ),
            Record(
                id="t2",
                values={
                    "t_title": "Build",
                    "t_status": "In progress",
                    "t_effort": 5,
                    "t_project": ["p1"],
                },
            ),
            Record(
                id="t3",
                values={
                    "t_title": "Test",
                    "t_status": "Not started",
                    "t_effort": None,
                    "t_project": [],
                },
            ),
        ],
    )


@pytest.fixture
def resolver(projects: Collection, tasks: Collection) -> MappingResolver:
    """Resolver over the projects/tasks pair."""
    return MappingResolver.from_collections([projects, tasks])
