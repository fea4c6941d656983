"""First-run onboarding: pick a preset workflow or build a custom one.

Two steps, "welcome" then "select". The custom builder starts with three
empty inputs and can hold between 2 and 7 of them. Empty names are filtered
on submit; fewer than 2 remaining is a ValidationError raised before the
store is called.

`store` is anything with create_workflow(columns=...), i.e. ServiceGateway or
ApiGateway.
"""

import logging

from planboard.errors import PersistenceError, ValidationError
from planboard.presets import PRESET_WORKFLOWS, preset_columns

logger = logging.getLogger(__name__)

CUSTOM = "custom"
MIN_CUSTOM_COLUMNS = 2
MAX_CUSTOM_COLUMNS = 7


class OnboardingWizard:
    def __init__(self, store, on_complete=None, max_columns=MAX_CUSTOM_COLUMNS):
        self.store = store
        self.on_complete = on_complete
        self.max_columns = max_columns
        self.step = "welcome"
        self.selected = None
        self.custom_columns = ["", "", ""]
        self.pending = False
        self.workflow = None

    def start(self):
        self.step = "select"

    # ─── Selection ───────────────────────────────────────────────

    def select_preset(self, key):
        if key not in PRESET_WORKFLOWS:
            raise ValidationError(
                f"Invalid preset '{key}'. Must be one of: {', '.join(PRESET_WORKFLOWS)}"
            )
        self.selected = key

    def select_custom(self):
        self.selected = CUSTOM

    def add_custom_column(self):
        if len(self.custom_columns) < self.max_columns:
            self.custom_columns.append("")
        return len(self.custom_columns)

    def remove_custom_column(self, index):
        if len(self.custom_columns) > MIN_CUSTOM_COLUMNS:
            del self.custom_columns[index]
        return len(self.custom_columns)

    def set_custom_column(self, index, value):
        self.custom_columns[index] = value

    # ─── Submit ──────────────────────────────────────────────────

    def resolve_columns(self):
        """Column names to persist for the current selection."""
        if self.selected == CUSTOM:
            columns = [c.strip() for c in self.custom_columns if c and c.strip()]
            if len(columns) < MIN_CUSTOM_COLUMNS:
                raise ValidationError(
                    "Please add at least 2 columns.", code="too_few_columns"
                )
            if len(columns) > self.max_columns:
                raise ValidationError(
                    f"A custom workflow can have at most {self.max_columns} columns.",
                    code="too_many_columns",
                )
            return columns
        if self.selected is None:
            raise ValidationError("Please select a workflow.", code="no_selection")
        return preset_columns(self.selected)

    def submit(self):
        """Persist the workflow once and signal completion."""
        if self.pending:
            raise ValidationError("Already saving.", code="pending")
        columns = self.resolve_columns()

        self.pending = True
        try:
            self.workflow = self.store.create_workflow(columns=columns)
        except PersistenceError as e:
            logger.error(f"Failed to create workflow: {e}")
            raise
        finally:
            self.pending = False

        self.step = "done"
        if self.on_complete is not None:
            self.on_complete(self.workflow)
        return self.workflow
