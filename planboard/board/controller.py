"""Board controller: loads the workflow and cards, runs drag gestures.

The controller owns the client-side copy of the board. A gesture runs
through the reducer in board.state; on drop the card is moved optimistically
to the end of the target column, the move is sent through the gateway, and
the result is reconciled:

    success              reload every card from the server
    PersistenceError     restore the moved card from its before-snapshot
    NotFound / Conflict  local copy can't be trusted, reload every card
    Unauthenticated      drop local state and re-raise

Move failures are logged, never raised (the board snapping back is the
feedback). Failures of explicit actions (create, edit, delete, add column)
are logged and re-raised so the caller can show a blocking message.

`pending` is set while a call is in flight. New gestures and submits are
refused until it clears, so at most one move is in flight per board.
"""

import logging

from planboard.board.drafts import CardDraft
from planboard.board.state import (
    IDLE,
    DragCancel,
    DragOver,
    DragStart,
    Drop,
    active_card_id,
    find_card,
    group_cards,
    preview_groups,
    reduce_drag,
    resolve_target_column,
)
from planboard.errors import (
    ConflictError,
    NotFound,
    PersistenceError,
    Unauthenticated,
    ValidationError,
)

logger = logging.getLogger(__name__)


def end_of_column_order(column_cards, card_id=None):
    """Order that appends a card to the end of a column.

    The column's card count (including the dragged card when it already
    sits there), raised past the current maximum when orders have gaps.
    """
    new_order = len(column_cards)
    others = [c["order"] for c in column_cards if c["id"] != card_id]
    if others:
        new_order = max(new_order, max(others) + 1)
    return new_order


class BoardController:
    def __init__(self, gateway, on_workflow_update=None):
        self.gateway = gateway
        self.on_workflow_update = on_workflow_update
        self.workflow = None
        self.cards = []
        self.drag_state = IDLE
        self.pending = False

    # ─── Loading ─────────────────────────────────────────────────

    @property
    def columns(self):
        if not self.workflow:
            return []
        return self.workflow["columns"]

    @property
    def configured(self):
        return self.workflow is not None

    def load(self):
        """Fetch workflow and cards. Returns False when onboarding is needed."""
        self.workflow = self.gateway.get_workflow()
        if self.workflow is None:
            self.cards = []
            return False
        self.reload_cards()
        return True

    def reload_cards(self):
        self.cards = list(self.gateway.list_cards())
        return self.cards

    def refresh_workflow(self):
        self.workflow = self.gateway.get_workflow()
        return self.workflow

    def cards_by_column(self):
        """Cards grouped per column, including the live hover preview."""
        return preview_groups(group_cards(self.columns, self.cards), self.drag_state)

    # ─── Drag gesture ────────────────────────────────────────────

    @property
    def active_card(self):
        """The card being dragged, for the floating preview."""
        card_id = active_card_id(self.drag_state)
        if card_id is None:
            return None
        return find_card(self.cards, card_id)

    def _dispatch(self, event):
        self.drag_state = reduce_drag(self.drag_state, event, self.columns, self.cards)
        return self.drag_state

    def drag_start(self, card_id):
        if self.pending:
            return False
        self._dispatch(DragStart(card_id))
        return self.active_card is not None

    def drag_over(self, over_id):
        return self._dispatch(DragOver(over_id))

    def cancel_drag(self):
        self._dispatch(DragCancel())

    def _is_noop_drop(self, card, target_column, over_id, column_cards):
        if card["column_id"] != target_column:
            return False
        if over_id == card["id"]:
            return True
        # Dropped on its own column's empty space while already last.
        return (
            over_id == target_column
            and bool(column_cards)
            and column_cards[-1]["id"] == card["id"]
        )

    def drag_end(self, over_id):
        """Finish the gesture. Returns True when a move was sent."""
        card_id = active_card_id(self.drag_state)
        self._dispatch(Drop(over_id))

        if card_id is None or over_id is None:
            return False
        target_column = resolve_target_column(over_id, self.columns, self.cards)
        if target_column is None:
            return False
        card = find_card(self.cards, card_id)
        if card is None:
            return False

        column_cards = group_cards(self.columns, self.cards).get(target_column, [])
        if self._is_noop_drop(card, target_column, over_id, column_cards):
            return False

        new_order = end_of_column_order(column_cards, card_id)
        self.move(card, target_column, new_order)
        return True

    def move(self, card, target_column, new_order):
        """Optimistically place `card`, persist, then reconcile."""
        snapshot = dict(card)
        self._replace_card(dict(card, column_id=target_column, order=new_order))

        self.pending = True
        try:
            self.gateway.move_card(
                card["id"],
                target_column,
                new_order,
                expected_revision=card.get("revision"),
            )
        except Unauthenticated:
            self.workflow = None
            self.cards = []
            raise
        except (NotFound, ConflictError) as e:
            logger.warning(f"Move of card {card['id']} rejected, reloading board: {e}")
            self._reload_or_restore(snapshot)
        except PersistenceError as e:
            logger.warning(f"Move of card {card['id']} failed, reverting: {e}")
            self._replace_card(snapshot)
        else:
            self._reload_or_restore(None)
        finally:
            self.pending = False

    def _replace_card(self, new_card):
        self.cards = [
            new_card if c["id"] == new_card["id"] else c for c in self.cards
        ]

    def _reload_or_restore(self, snapshot):
        try:
            self.reload_cards()
        except PersistenceError as e:
            logger.warning(f"Board reload failed: {e}")
            if snapshot is not None:
                self._replace_card(snapshot)

    # ─── Explicit actions ────────────────────────────────────────

    def _begin(self):
        if self.pending:
            raise ValidationError("Another change is still being saved.", code="pending")
        self.pending = True

    def add_column(self, name):
        """Append a column, then notify the parent so it can refresh."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Column name is required.")
        self._begin()
        try:
            self.workflow = self.gateway.append_column(
                name, expected_revision=(self.workflow or {}).get("revision")
            )
        except ConflictError:
            logger.warning("Workflow changed elsewhere, refreshing")
            self.refresh_workflow()
            raise
        except PersistenceError as e:
            logger.error(f"Failed to add column: {e}")
            raise
        finally:
            self.pending = False
        if self.on_workflow_update is not None:
            self.on_workflow_update()
        return self.workflow

    def new_draft(self, column_id=None, with_ideas=True):
        """Create-dialog state, defaulting to the first column."""
        if column_id is None and self.columns:
            column_id = self.columns[0]["id"]
        ideas = self.gateway.list_ideas() if with_ideas else []
        return CardDraft(column_id, ideas)

    def create_card(self, draft):
        payload = draft.to_payload()
        if payload["column_id"] not in [c["id"] for c in self.columns]:
            raise ValidationError("Pick one of your workflow columns.", code="invalid_column")
        self._begin()
        try:
            card = self.gateway.create_card(**payload)
        except PersistenceError as e:
            logger.error(f"Failed to create content card: {e}")
            raise
        finally:
            self.pending = False
        draft.reset()
        self.reload_cards()
        return card

    def update_card(self, card_id, changes):
        if "title" in changes and not (changes["title"] or "").strip():
            raise ValidationError("Please enter a title.", code="title_required")
        if "platforms" in changes and not changes["platforms"]:
            raise ValidationError(
                "Please select at least one platform.", code="platforms_required"
            )
        card = find_card(self.cards, card_id)
        if card is None:
            raise NotFound(f"Card {card_id} not found.", code="card_not_found")
        self._begin()
        try:
            updated = self.gateway.update_card(
                card_id, changes, expected_revision=card.get("revision")
            )
        except (ConflictError, NotFound):
            self.pending = False
            self.reload_cards()
            raise
        except PersistenceError as e:
            logger.error(f"Failed to update content card {card_id}: {e}")
            raise
        finally:
            self.pending = False
        self.reload_cards()
        return updated

    def delete_card(self, card_id, confirm=False):
        """Hard delete. Refused unless the user confirmed."""
        if not confirm:
            raise ValidationError(
                "Deleting a card is permanent and needs confirmation.",
                code="confirmation_required",
            )
        self._begin()
        try:
            self.gateway.delete_card(card_id)
        except PersistenceError as e:
            logger.error(f"Failed to delete content card {card_id}: {e}")
            raise
        finally:
            self.pending = False
        self.reload_cards()

    def toggle_checked(self, card_id):
        card = find_card(self.cards, card_id)
        if card is None:
            return None
        self._begin()
        snapshot = dict(card)
        self._replace_card(dict(card, checked=not card.get("checked")))
        try:
            updated = self.gateway.toggle_checked(card_id)
        except (NotFound, PersistenceError) as e:
            logger.warning(f"Toggle of card {card_id} failed, reverting: {e}")
            self._replace_card(snapshot)
            return None
        finally:
            self.pending = False
        self._replace_card(updated)
        return updated
