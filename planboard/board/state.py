"""Drag gesture state machine for the planning board.

A gesture is an explicit value, one of:

    Idle                            no drag in progress
    Dragging(card_id)               picked up, pointer not over anything yet
    Hovering(card_id, column_id, index)
                                    pointer over a column (or a card in it);
                                    the preview shows the card at `index`

`reduce_drag` is the only transition function. It is pure: it reads the
columns and cards it is given and returns the next state, so a gesture can
be replayed in tests without any pointer events. A Drop ends the gesture;
persisting the move is the controller's job, since it needs the network.

Columns are dicts with an "id"; cards are dicts with "id", "column_id" and
"order" (the JSON shape the API returns).
"""

from collections import namedtuple


Idle = namedtuple("Idle", [])
Dragging = namedtuple("Dragging", ["card_id"])
Hovering = namedtuple("Hovering", ["card_id", "column_id", "index"])

IDLE = Idle()

# Events
DragStart = namedtuple("DragStart", ["card_id"])
DragOver = namedtuple("DragOver", ["over_id"])
DragCancel = namedtuple("DragCancel", [])
Drop = namedtuple("Drop", ["over_id"])


def active_card_id(state):
    return getattr(state, "card_id", None)


def find_card(cards, card_id):
    for card in cards:
        if card["id"] == card_id:
            return card
    return None


def resolve_target_column(over_id, columns, cards):
    """Column under the pointer.

    `over_id` is either a column id (empty space of a column) or a card id
    (whatever card is under the pointer). Returns None when it is neither.
    """
    if over_id is None:
        return None
    for column in columns:
        if column["id"] == over_id:
            return column["id"]
    card = find_card(cards, over_id)
    if card is not None:
        return card["column_id"]
    return None


def group_cards(columns, cards):
    """{column_id: [cards ascending by order]} for every workflow column.

    The sort is stable, so cards with equal order keep list order. Cards
    whose column is not in the workflow are left out.
    """
    groups = {column["id"]: [] for column in columns}
    for card in cards:
        if card["column_id"] in groups:
            groups[card["column_id"]].append(card)
    for column_id in groups:
        groups[column_id].sort(key=lambda c: c["order"])
    return groups


def _hover_index(over_id, column_id, groups, card_id):
    """Index the dragged card would take in `column_id`.

    Over a card: that card's slot. Over the column itself: the end.
    """
    siblings = [c for c in groups.get(column_id, []) if c["id"] != card_id]
    for index, card in enumerate(siblings):
        if card["id"] == over_id:
            return index
    return len(siblings)


def reduce_drag(state, event, columns, cards):
    """Return the next gesture state for `event`."""
    if isinstance(event, DragStart):
        if find_card(cards, event.card_id) is None:
            return IDLE
        return Dragging(event.card_id)

    if isinstance(event, (DragCancel, Drop)):
        return IDLE

    if isinstance(event, DragOver):
        card_id = active_card_id(state)
        if card_id is None:
            return state
        column_id = resolve_target_column(event.over_id, columns, cards)
        if column_id is None or event.over_id == card_id:
            # Over nothing useful (or over itself): keep the last preview.
            return state
        groups = group_cards(columns, cards)
        index = _hover_index(event.over_id, column_id, groups, card_id)
        new_state = Hovering(card_id, column_id, index)
        return state if new_state == state else new_state

    raise TypeError(f"Unknown drag event: {event!r}")


def preview_groups(groups, state):
    """Groups as they should render during the gesture.

    While hovering, the dragged card is spliced out of its column and into
    the hovered column at the hovered index. Nothing is persisted and the
    input groups are not modified.
    """
    if not isinstance(state, Hovering):
        return groups
    preview = {column_id: list(cards) for column_id, cards in groups.items()}
    moving = None
    for column_id, cards in preview.items():
        for card in cards:
            if card["id"] == state.card_id:
                moving = card
                cards.remove(card)
                break
        if moving is not None:
            break
    if moving is None or state.column_id not in preview:
        return groups
    target = preview[state.column_id]
    index = min(state.index, len(target))
    target.insert(index, dict(moving, column_id=state.column_id))
    return preview
