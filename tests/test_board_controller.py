"""Tests for BoardController: drop handling, optimistic moves and how each
failure is reconciled. Uses an in-memory gateway that records calls."""

import pytest

from planboard.board.controller import BoardController, end_of_column_order
from planboard.board.gateway import ServiceGateway
from planboard.board.state import Hovering, IDLE
from planboard.errors import (
    ConflictError,
    NotFound,
    PersistenceError,
    Unauthenticated,
    ValidationError,
)
from planboard.extensions import db
from planboard.models.content import ContentCard
from planboard.services import card_service


class FakeGateway:
    """Server stand-in. `fail_next` makes the next write raise."""

    def __init__(self, columns, cards, ideas=None):
        self.workflow = {
            "id": "wf",
            "revision": 1,
            "columns": [{"id": cid, "name": name} for cid, name in columns],
        }
        self.server_cards = {c["id"]: dict(c) for c in cards}
        self.ideas = ideas or []
        self.calls = []
        self.fail_next = None

    def _maybe_fail(self):
        if self.fail_next is not None:
            error, self.fail_next = self.fail_next, None
            raise error

    def get_workflow(self):
        return self.workflow

    def list_cards(self):
        self.calls.append(("list_cards",))
        return sorted(
            (dict(c) for c in self.server_cards.values()), key=lambda c: c["order"]
        )

    def list_ideas(self):
        return list(self.ideas)

    def move_card(self, card_id, column_id, order, expected_revision=None):
        self.calls.append(("move_card", card_id, column_id, order))
        self._maybe_fail()
        card = self.server_cards[card_id]
        card.update(column_id=column_id, order=order)
        return dict(card)

    def append_column(self, name, expected_revision=None):
        self.calls.append(("append_column", name, expected_revision))
        self._maybe_fail()
        self.workflow = dict(
            self.workflow,
            revision=self.workflow["revision"] + 1,
            columns=self.workflow["columns"] + [{"id": f"c-{name}", "name": name}],
        )
        return self.workflow

    def create_card(self, **fields):
        self.calls.append(("create_card", fields))
        self._maybe_fail()
        card = dict(fields, id=f"new-{len(self.server_cards)}", order=0, checked=False)
        self.server_cards[card["id"]] = card
        return card

    def update_card(self, card_id, changes, expected_revision=None):
        self.calls.append(("update_card", card_id, changes))
        self._maybe_fail()
        self.server_cards[card_id].update(changes)
        return dict(self.server_cards[card_id])

    def delete_card(self, card_id):
        self.calls.append(("delete_card", card_id))
        self._maybe_fail()
        del self.server_cards[card_id]

    def toggle_checked(self, card_id):
        self.calls.append(("toggle_checked", card_id))
        self._maybe_fail()
        card = self.server_cards[card_id]
        card["checked"] = not card.get("checked")
        return dict(card)

    def writes(self):
        return [c for c in self.calls if c[0] != "list_cards"]


COLUMNS = [("c-idea", "Idea"), ("c-wip", "In Progress"), ("c-done", "Done")]


@pytest.fixture
def gateway():
    return FakeGateway(COLUMNS, [
        {"id": "1", "column_id": "c-idea", "order": 0, "revision": 1, "title": "one"},
        {"id": "2", "column_id": "c-idea", "order": 1, "revision": 1, "title": "two"},
    ])


@pytest.fixture
def board(gateway):
    board = BoardController(gateway)
    assert board.load() is True
    return board


def _orders(board, column_id):
    return [(c["id"], c["order"]) for c in board.cards_by_column()[column_id]]


class TestLoad:

    def test_not_configured(self):
        gateway = FakeGateway(COLUMNS, [])
        gateway.workflow = None
        board = BoardController(gateway)
        assert board.load() is False
        assert board.columns == []
        assert board.cards == []

    def test_groups_by_column(self, board):
        assert _orders(board, "c-idea") == [("1", 0), ("2", 1)]
        assert _orders(board, "c-done") == []


class TestDrop:

    def test_move_to_other_column(self, board, gateway):
        board.drag_start("2")
        assert board.drag_end("c-done") is True
        assert ("move_card", "2", "c-done", 0) in gateway.calls
        assert _orders(board, "c-done") == [("2", 0)]
        assert _orders(board, "c-idea") == [("1", 0)]
        assert board.drag_state == IDLE

    def test_drop_on_card_appends_to_its_column(self, board, gateway):
        gateway.server_cards["3"] = {"id": "3", "column_id": "c-done", "order": 0, "revision": 1}
        board.load()
        board.drag_start("1")
        board.drag_end("3")
        assert ("move_card", "1", "c-done", 1) in gateway.calls
        orders = dict(_orders(board, "c-done"))
        assert orders["1"] == max(orders.values())

    def test_no_target_cancels(self, board, gateway):
        board.drag_start("1")
        assert board.drag_end(None) is False
        assert gateway.writes() == []
        assert board.drag_state == IDLE

    def test_unknown_target_cancels(self, board, gateway):
        board.drag_start("1")
        assert board.drag_end("not-a-column") is False
        assert gateway.writes() == []

    def test_drop_on_itself_is_noop(self, board, gateway):
        board.drag_start("1")
        assert board.drag_end("1") is False
        assert gateway.writes() == []
        assert _orders(board, "c-idea") == [("1", 0), ("2", 1)]

    def test_drop_last_card_on_own_column_is_noop(self, board, gateway):
        board.drag_start("2")
        assert board.drag_end("c-idea") is False
        assert gateway.writes() == []

    def test_drop_first_card_on_own_column_moves_to_end(self, board, gateway):
        board.drag_start("1")
        assert board.drag_end("c-idea") is True
        assert ("move_card", "1", "c-idea", 2) in gateway.calls
        assert _orders(board, "c-idea") == [("2", 1), ("1", 2)]

    def test_without_drag_start(self, board, gateway):
        assert board.drag_end("c-done") is False
        assert gateway.writes() == []

    def test_hover_preview_is_not_persisted(self, board, gateway):
        board.drag_start("2")
        board.drag_over("c-done")
        assert board.drag_state == Hovering("2", "c-done", 0)
        assert _orders(board, "c-done") == [("2", 1)]
        assert gateway.writes() == []
        board.cancel_drag()
        assert _orders(board, "c-done") == []

    def test_active_card(self, board):
        board.drag_start("2")
        assert board.active_card["title"] == "two"


class TestReconciliation:

    def test_success_reloads_server_state(self, board, gateway):
        # The server puts the card somewhere other than the optimistic guess.
        original = gateway.move_card

        def move_and_renumber(card_id, column_id, order, expected_revision=None):
            result = original(card_id, column_id, order, expected_revision)
            gateway.server_cards[card_id]["order"] = 42
            return result

        gateway.move_card = move_and_renumber
        board.drag_start("1")
        board.drag_end("c-done")
        assert _orders(board, "c-done") == [("1", 42)]
        assert board.cards == gateway.list_cards()

    def test_persistence_error_restores_snapshot(self, board, gateway):
        gateway.fail_next = PersistenceError("db down")
        before = gateway.list_cards()
        gateway.calls.clear()
        board.drag_start("2")
        board.drag_end("c-done")
        assert _orders(board, "c-idea") == [("1", 0), ("2", 1)]
        assert sorted(board.cards, key=lambda c: c["id"]) == sorted(before, key=lambda c: c["id"])
        assert ("list_cards",) not in gateway.calls
        assert board.pending is False

    def test_not_found_reloads(self, board, gateway):
        del gateway.server_cards["2"]
        gateway.fail_next = NotFound("gone")
        board.drag_start("2")
        board.drag_end("c-done")
        assert [c["id"] for c in board.cards] == ["1"]

    def test_conflict_reloads(self, board, gateway):
        gateway.server_cards["2"].update(column_id="c-wip", order=0, revision=2)
        gateway.fail_next = ConflictError("stale")
        board.drag_start("2")
        board.drag_end("c-done")
        assert _orders(board, "c-wip") == [("2", 0)]
        assert _orders(board, "c-done") == []

    def test_unauthenticated_drops_state_and_raises(self, board, gateway):
        gateway.fail_next = Unauthenticated()
        board.drag_start("2")
        with pytest.raises(Unauthenticated):
            board.drag_end("c-done")
        assert board.cards == []
        assert board.configured is False

    def test_pending_blocks_new_gesture(self, board):
        board.pending = True
        assert board.drag_start("1") is False
        assert board.drag_state == IDLE


class TestEndOfColumnOrder:

    def test_empty(self):
        assert end_of_column_order([]) == 0

    def test_contiguous(self):
        cards = [{"id": "a", "order": 0}, {"id": "b", "order": 1}]
        assert end_of_column_order(cards) == 2

    def test_with_gaps(self):
        cards = [{"id": "a", "order": 0}, {"id": "b", "order": 9}]
        assert end_of_column_order(cards) == 10

    def test_card_already_in_column(self):
        cards = [{"id": "a", "order": 0}, {"id": "b", "order": 1}]
        assert end_of_column_order(cards, card_id="a") == 2


class TestColumnsAndCards:

    def test_add_column_notifies_parent(self, gateway):
        updates = []
        board = BoardController(gateway, on_workflow_update=lambda: updates.append(True))
        board.load()
        board.add_column("  Published ")
        assert ("append_column", "Published", 1) in gateway.calls
        assert [c["name"] for c in board.columns][-1] == "Published"
        assert "c-Published" in board.cards_by_column()
        assert updates == [True]

    def test_add_column_requires_name(self, board, gateway):
        with pytest.raises(ValidationError):
            board.add_column("   ")
        assert gateway.writes() == []

    def test_add_column_conflict_refreshes(self, board, gateway):
        gateway.fail_next = ConflictError("stale")
        gateway.workflow = dict(gateway.workflow, revision=5)
        with pytest.raises(ConflictError):
            board.add_column("Edit")
        assert board.workflow["revision"] == 5
        assert board.pending is False

    def test_create_from_draft(self, board, gateway):
        gateway.ideas = [{
            "id": "idea-1",
            "title": "My idea",
            "raw_text": "notes",
            "target_platform": "twitter",
            "linked_series_id": None,
        }]
        draft = board.new_draft()
        draft.select_idea("idea-1")
        assert draft.title == "My idea"
        assert draft.platforms == ["twitter"]
        assert draft.column_id == "c-idea"
        board.create_card(draft)
        _, fields = [c for c in gateway.calls if c[0] == "create_card"][0]
        assert fields["idea_id"] == "idea-1"
        assert fields["platforms"] == ["twitter"]
        assert draft.title == ""
        assert any(c["title"] == "My idea" for c in board.cards)

    def test_create_requires_platform(self, board, gateway):
        draft = board.new_draft()
        draft.title = "No platforms"
        with pytest.raises(ValidationError) as exc:
            board.create_card(draft)
        assert exc.value.code == "platforms_required"
        assert gateway.writes() == []

    def test_create_failure_propagates(self, board, gateway):
        draft = board.new_draft()
        draft.title = "Fails"
        draft.toggle_platform("youtube")
        gateway.fail_next = PersistenceError("db down")
        with pytest.raises(PersistenceError):
            board.create_card(draft)
        assert draft.title == "Fails"
        assert board.pending is False

    def test_update_card(self, board, gateway):
        board.update_card("1", {"title": "renamed"})
        assert ("update_card", "1", {"title": "renamed"}) in gateway.calls
        assert [c for c in board.cards if c["id"] == "1"][0]["title"] == "renamed"

    def test_update_rejects_blank_title(self, board, gateway):
        with pytest.raises(ValidationError):
            board.update_card("1", {"title": " "})
        assert gateway.writes() == []

    def test_delete_requires_confirmation(self, board, gateway):
        with pytest.raises(ValidationError) as exc:
            board.delete_card("1")
        assert exc.value.code == "confirmation_required"
        assert gateway.writes() == []

    def test_delete_confirmed(self, board, gateway):
        board.delete_card("1", confirm=True)
        assert [c["id"] for c in board.cards] == ["2"]

    def test_toggle_failure_reverts(self, board, gateway):
        gateway.fail_next = PersistenceError("db down")
        assert board.toggle_checked("1") is None
        assert not [c for c in board.cards if c["id"] == "1"][0].get("checked")
        assert board.pending is False

    def test_toggle(self, board):
        assert board.toggle_checked("1")["checked"] is True
        assert board.pending is False

    def test_toggle_refused_while_pending(self, board, gateway):
        board.pending = True
        with pytest.raises(ValidationError) as exc:
            board.toggle_checked("1")
        assert exc.value.code == "pending"
        assert gateway.writes() == []
        assert not [c for c in board.cards if c["id"] == "1"][0].get("checked")

    def test_toggle_during_move_is_refused(self, board, gateway):
        def toggle_mid_move(*args, **kwargs):
            with pytest.raises(ValidationError):
                board.toggle_checked("2")
            raise PersistenceError("db down")

        gateway.move_card = toggle_mid_move
        board.drag_start("1")
        board.drag_end("c-done")
        assert ("toggle_checked", "2") not in gateway.calls
        assert board.pending is False


class TestServiceGatewayBoard:
    """The controller driving the real services through ServiceGateway."""

    @pytest.fixture
    def live_board(self, seed_data, workflow, db_session):
        for title in ("1", "2"):
            card_service.create_card(
                seed_data["user_id"],
                title=title,
                platforms=["youtube"],
                column_id=workflow["columns"]["Idea"],
            )
        db_session.commit()
        board = BoardController(ServiceGateway(seed_data["user_id"]))
        assert board.load() is True
        return board

    def _card(self, board, title):
        return [c for c in board.cards if c["title"] == title][0]

    def test_move_to_done_persists(self, live_board, workflow):
        done = workflow["columns"]["Done"]
        card = self._card(live_board, "2")
        live_board.drag_start(card["id"])
        assert live_board.drag_end(done) is True

        stored = db.session.get(ContentCard, card["id"])
        assert (stored.column_id, stored.order) == (done, 0)
        assert self._card(live_board, "1")["order"] == 0
        assert self._card(live_board, "2")["revision"] == 2

    def test_stale_card_reloads(self, live_board, seed_data, workflow):
        card = self._card(live_board, "1")
        card_service.update_card(seed_data["user_id"], card["id"], {"title": "1b"})
        db.session.commit()

        live_board.drag_start(card["id"])
        live_board.drag_end(workflow["columns"]["Done"])

        stored = db.session.get(ContentCard, card["id"])
        assert stored.column_id == workflow["columns"]["Idea"]
        assert [c["title"] for c in live_board.cards_by_column()[workflow["columns"]["Idea"]]] == ["1b", "2"]

    def test_not_configured(self, seed_data):
        board = BoardController(ServiceGateway(seed_data["user_id"]))
        assert board.load() is False
