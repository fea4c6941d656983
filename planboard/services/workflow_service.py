"""Workflow service: the user's ordered, append-only list of columns.

A user has at most one workflow (UNIQUE on workflows.user_id). It is created
once during onboarding, from a preset or a custom list of names, and then
only grows by appending columns.

Functions flush but do NOT commit; the caller commits.
"""

import logging

from planboard.errors import ConflictError, NotFound, ValidationError
from planboard.extensions import db
from planboard.models.workflow import Workflow, WorkflowColumn
from planboard.presets import PRESET_WORKFLOWS, preset_columns
from planboard.services.common import (
    audit,
    check_revision,
    flush,
    require_user,
    sanitize,
)

logger = logging.getLogger(__name__)

MIN_COLUMNS = 2


def clean_column_names(names):
    """Trim and sanitize names, dropping the empty ones."""
    cleaned = []
    for name in names or []:
        if name is None:
            continue
        if not isinstance(name, str):
            raise ValidationError("Column names must be text.")
        name = sanitize(name)
        if name:
            cleaned.append(name)
    return cleaned


def get_workflow(user_id):
    """Return the user's Workflow, or None when onboarding hasn't happened."""
    require_user(user_id)
    return Workflow.query.filter_by(user_id=user_id).first()


def require_workflow(user_id):
    workflow = get_workflow(user_id)
    if workflow is None:
        raise NotFound(
            "No workflow configured yet.", code="workflow_not_configured"
        )
    return workflow


def create_workflow(user_id, columns=None, preset=None, max_columns=None):
    """Create the user's workflow from custom column names or a preset key.

    Args:
        user_id: Owner's user UUID string.
        columns: Custom column names. Empty names are filtered out.
        preset: Key of PRESET_WORKFLOWS. Mutually exclusive with columns.
        max_columns: Optional upper bound for the custom path.

    Returns:
        The created Workflow.

    Raises:
        ValidationError: Fewer than 2 usable names, too many names, unknown
            preset, or both/neither of columns and preset given.
        ConflictError: The user already has a workflow.
    """
    require_user(user_id)

    if (columns is None) == (preset is None):
        raise ValidationError("Provide either custom columns or a preset.")

    if preset is not None:
        names = preset_columns(preset)
        if names is None:
            raise ValidationError(
                f"Invalid preset '{preset}'. Must be one of: {', '.join(PRESET_WORKFLOWS)}"
            )
    else:
        if not isinstance(columns, (list, tuple)):
            raise ValidationError("Columns must be a list of names.")
        names = clean_column_names(columns)
        if len(names) < MIN_COLUMNS:
            raise ValidationError(
                f"Please add at least {MIN_COLUMNS} columns.", code="too_few_columns"
            )
        if max_columns is not None and len(names) > max_columns:
            raise ValidationError(
                f"A custom workflow can have at most {max_columns} columns.",
                code="too_many_columns",
            )

    if get_workflow(user_id) is not None:
        raise ConflictError("Workflow already exists.", code="workflow_exists")

    workflow = Workflow(user_id=user_id, revision=1)
    for position, name in enumerate(names):
        workflow.columns.append(WorkflowColumn(name=name, position=position))
    db.session.add(workflow)
    flush("create workflow", conflict_message="Workflow already exists.")

    audit(
        user_id,
        "workflow.created",
        workflow_id=workflow.id,
        preset=preset,
        columns=names,
    )
    flush("create workflow")

    logger.info(f"Workflow {workflow.id} created for user {user_id} ({len(names)} columns)")
    return workflow


def append_column(user_id, name, expected_revision=None):
    """Append a column to the end of the user's workflow.

    Duplicate display names are allowed; each column gets its own id.

    Returns:
        The created WorkflowColumn.

    Raises:
        ValidationError: Empty name.
        NotFound: The user has no workflow.
        ConflictError: expected_revision is stale.
    """
    require_user(user_id)
    name = sanitize(name or "")
    if not name:
        raise ValidationError("Column name is required.")

    workflow = require_workflow(user_id)
    check_revision(workflow, expected_revision, "Workflow")

    position = max((col.position for col in workflow.columns), default=-1) + 1
    column = WorkflowColumn(name=name, position=position)
    workflow.columns.append(column)
    workflow.revision += 1
    flush("add column")

    audit(
        user_id,
        "workflow.column_added",
        workflow_id=workflow.id,
        column_id=column.id,
        name=name,
    )
    flush("add column")
    return column


def find_column(user_id, column_id):
    """Return the user's WorkflowColumn with this id, or None."""
    if not column_id or not isinstance(column_id, str):
        return None
    return (
        WorkflowColumn.query
        .join(Workflow, Workflow.id == WorkflowColumn.workflow_id)
        .filter(Workflow.user_id == user_id, WorkflowColumn.id == column_id)
        .first()
    )
