"""In-process board gateway.

Adapts the planning services to the interface BoardController and
OnboardingWizard expect, returning the same dicts the JSON API returns.
Each write commits on success and rolls back on failure. Needs an app
context.
"""

from sqlalchemy.exc import SQLAlchemyError

from planboard.errors import PersistenceError
from planboard.extensions import db
from planboard.services import card_service, lookup_service, workflow_service


class ServiceGateway:
    def __init__(self, user_id):
        self.user_id = user_id

    def _commit(self, action):
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise PersistenceError(f"Failed to {action}.") from e

    def _write(self, action, fn, *args, **kwargs):
        try:
            result = fn(self.user_id, *args, **kwargs)
        except Exception:
            db.session.rollback()
            raise
        self._commit(action)
        return result

    # ─── Workflow ────────────────────────────────────────────────

    def get_workflow(self):
        workflow = workflow_service.get_workflow(self.user_id)
        return workflow.to_dict() if workflow else None

    def create_workflow(self, columns=None, preset=None):
        workflow = self._write(
            "create workflow",
            workflow_service.create_workflow,
            columns=columns,
            preset=preset,
        )
        return workflow.to_dict()

    def append_column(self, name, expected_revision=None):
        column = self._write(
            "add column",
            workflow_service.append_column,
            name,
            expected_revision=expected_revision,
        )
        return column.workflow.to_dict()

    # ─── Cards ───────────────────────────────────────────────────

    def list_cards(self):
        return [c.to_dict() for c in card_service.list_cards(self.user_id)]

    def create_card(self, **fields):
        card = self._write("create content card", card_service.create_card, **fields)
        return card.to_dict()

    def update_card(self, card_id, changes, expected_revision=None):
        card = self._write(
            "update content card",
            card_service.update_card,
            card_id,
            changes,
            expected_revision=expected_revision,
        )
        return card.to_dict()

    def move_card(self, card_id, column_id, order, expected_revision=None):
        card = self._write(
            "move card",
            card_service.move_card,
            card_id,
            column_id,
            order,
            expected_revision=expected_revision,
        )
        return card.to_dict()

    def toggle_checked(self, card_id):
        card = self._write("toggle card", card_service.toggle_checked, card_id)
        return card.to_dict()

    def delete_card(self, card_id):
        self._write("delete card", card_service.delete_card, card_id)

    # ─── Lookups ─────────────────────────────────────────────────

    def list_ideas(self):
        return [i.to_dict() for i in lookup_service.list_ideas(self.user_id)]

    def list_series(self):
        return [s.to_dict() for s in lookup_service.list_series(self.user_id)]

    def idea_prefill(self, idea_id):
        return card_service.idea_prefill(self.user_id, idea_id)
