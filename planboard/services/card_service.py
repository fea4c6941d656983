"""Card service: CRUD plus positional semantics for content cards.

Position (column_id, order) is only ever changed by move_card; update_card
refuses it. New cards go to the end of their column unless an explicit order
is given. Titles and descriptions are sanitized with bleach.clean().

Each card carries a `revision`; callers that pass `expected_revision` get a
ConflictError instead of silently overwriting a newer write.

Functions flush but do NOT commit; the caller commits.
"""

import logging
from datetime import datetime, timezone

from planboard.errors import NotFound, ValidationError
from planboard.extensions import db
from planboard.models.content import ContentCard
from planboard.presets import PLATFORMS, content_types_for_platforms
from planboard.services import lookup_service, workflow_service
from planboard.services.common import (
    audit,
    check_revision,
    flush,
    require_user,
    sanitize,
    to_int,
)

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "description", "platforms", "content_type", "series_id")


# ─── Validation helpers ──────────────────────────────────────────

def normalize_platforms(platforms):
    """Lower-case, de-duplicate (keeping first-seen order), reject unknowns."""
    if isinstance(platforms, str):
        platforms = [platforms]
    result = []
    if platforms is not None and not isinstance(platforms, (list, tuple)):
        raise ValidationError("Platforms must be a list.")
    for platform in platforms or []:
        if platform is not None and not isinstance(platform, str):
            raise ValidationError("Platforms must be a list of names.")
        platform = (platform or "").strip().lower()
        if not platform:
            continue
        if platform not in PLATFORMS:
            raise ValidationError(
                f"Invalid platform '{platform}'. Must be one of: {', '.join(PLATFORMS)}"
            )
        if platform not in result:
            result.append(platform)
    if not result:
        raise ValidationError(
            "Select at least one platform.", code="platforms_required"
        )
    return result


def _check_content_type(content_type, platforms):
    if not content_type:
        return None
    allowed = content_types_for_platforms(platforms)
    if content_type not in allowed:
        raise ValidationError(
            f"Content type '{content_type}' is not available for "
            f"{', '.join(platforms)}."
        )
    return content_type


def _require_title(title):
    if title is not None and not isinstance(title, str):
        raise ValidationError("Title must be text.")
    title = sanitize(title or "")
    if not title:
        raise ValidationError("Title is required.", code="title_required")
    return title


def _require_column(user_id, column_id):
    column = workflow_service.find_column(user_id, column_id)
    if column is None:
        raise ValidationError(
            f"Column {column_id} is not part of your workflow.",
            code="invalid_column",
        )
    return column


def _optional_series_id(user_id, series_id):
    """Unknown series are dropped to null rather than failing the write."""
    if not series_id or not isinstance(series_id, str):
        return None
    if lookup_service.get_series(user_id, series_id) is None:
        logger.info(f"Series {series_id} not found for user {user_id}, ignoring")
        return None
    return series_id


def _optional_idea_id(user_id, idea_id):
    if not idea_id or not isinstance(idea_id, str):
        return None
    if lookup_service.get_idea(user_id, idea_id) is None:
        logger.info(f"Idea {idea_id} not found for user {user_id}, ignoring")
        return None
    return idea_id


def next_order(user_id, column_id):
    """Order value that puts a card at the end of `column_id`.

    Equals the column's card count when orders are contiguous; never lower
    than max(order) + 1 so the card always lands last.
    """
    query = db.session.query(ContentCard.order).filter(
        ContentCard.user_id == user_id,
        ContentCard.column_id == column_id,
    )
    orders = [row[0] for row in query.all()]
    if not orders:
        return 0
    return max(len(orders), max(orders) + 1)


# ─── Queries ─────────────────────────────────────────────────────

def list_cards(user_id):
    """All of the user's cards, ascending by order. Grouping is the caller's job."""
    require_user(user_id)
    return (
        ContentCard.query
        .filter_by(user_id=user_id)
        .order_by(ContentCard.order, ContentCard.created_at)
        .all()
    )


def get_card(user_id, card_id):
    """Return the user's card or raise NotFound."""
    require_user(user_id)
    card = db.session.get(ContentCard, card_id) if card_id else None
    if card is None or card.user_id != user_id:
        raise NotFound(f"Card {card_id} not found.", code="card_not_found")
    return card


# ─── Writes ──────────────────────────────────────────────────────

def create_card(
    user_id,
    title,
    platforms,
    column_id,
    description=None,
    content_type=None,
    series_id=None,
    idea_id=None,
    order=None,
):
    """Create a content card at the end of its column.

    Args:
        user_id: Owner's user UUID string.
        title: Card title (will be sanitized). Required.
        platforms: Iterable of platform tags. At least one required.
        column_id: Id of one of the user's workflow columns.
        description: Optional body text (will be sanitized).
        content_type: Optional, must match the selected platforms.
        series_id: Optional series reference; unknown ids become null.
        idea_id: Optional source idea; unknown ids become null.
        order: Explicit order; defaults to the end of the column.

    Returns:
        The created ContentCard.

    Raises:
        ValidationError: Missing title, no platforms, bad content type or
            a column outside the user's workflow.
    """
    require_user(user_id)
    title = _require_title(title)
    description = sanitize(description) or None
    platforms = normalize_platforms(platforms)
    content_type = _check_content_type(content_type, platforms)
    column = _require_column(user_id, column_id)

    if order is None:
        order = next_order(user_id, column.id)
    else:
        order = to_int(order, "Order")

    card = ContentCard(
        user_id=user_id,
        column_id=column.id,
        order=order,
        title=title,
        description=description,
        platforms=platforms,
        content_type=content_type,
        series_id=_optional_series_id(user_id, series_id),
        idea_id=_optional_idea_id(user_id, idea_id),
        checked=False,
        revision=1,
    )
    db.session.add(card)
    flush("create content card")

    audit(
        user_id,
        "card.created",
        card_id=card.id,
        column_id=card.column_id,
        order=card.order,
        idea_id=card.idea_id,
    )
    flush("create content card")
    return card


def idea_prefill(user_id, idea_id):
    """Field values copied from an idea into the create dialog.

    A one-time copy: later edits to the idea never reach the card.
    """
    idea = lookup_service.get_idea(user_id, idea_id)
    if idea is None:
        raise NotFound("Idea not found.", code="idea_not_found")
    return {
        "title": idea.title,
        "description": idea.raw_text or None,
        "platforms": [idea.target_platform] if idea.target_platform else [],
        "series_id": idea.linked_series_id,
        "idea_id": idea.id,
    }


def create_card_from_idea(user_id, idea_id, column_id):
    """Create a card seeded from an idea (moving an idea into planning)."""
    prefill = idea_prefill(user_id, idea_id)
    return create_card(
        user_id,
        title=prefill["title"],
        platforms=prefill["platforms"],
        column_id=column_id,
        description=prefill["description"],
        series_id=prefill["series_id"],
        idea_id=prefill["idea_id"],
    )


def update_card(user_id, card_id, changes, expected_revision=None):
    """Edit a card's content fields.

    Only title, description, platforms, content_type and series_id may
    change here. Position changes belong to move_card.

    Raises:
        ValidationError: Unsupported field or invalid value.
        NotFound: Card doesn't exist or belongs to someone else.
        ConflictError: expected_revision is stale.
    """
    require_user(user_id)
    changes = dict(changes or {})
    unsupported = sorted(set(changes) - set(EDITABLE_FIELDS))
    if unsupported:
        raise ValidationError(
            f"Cannot update {', '.join(unsupported)} here.",
            code="unsupported_field",
        )

    card = get_card(user_id, card_id)
    check_revision(card, expected_revision, "Card")

    if "title" in changes:
        card.title = _require_title(changes["title"])
    if "description" in changes:
        card.description = sanitize(changes["description"]) or None
    if "platforms" in changes:
        card.platforms = normalize_platforms(changes["platforms"])
    if "content_type" in changes:
        card.content_type = changes["content_type"] or None
    # Re-check even when only platforms changed.
    card.content_type = _check_content_type(card.content_type, card.platforms)
    if "series_id" in changes:
        card.series_id = _optional_series_id(user_id, changes["series_id"])

    card.revision += 1
    card.updated_at = datetime.now(timezone.utc)
    flush("update content card")

    audit(user_id, "card.updated", card_id=card.id, fields=sorted(changes))
    flush("update content card")
    return card


def move_card(user_id, card_id, column_id, order, expected_revision=None):
    """Place a card at (column_id, order). The only way to change position.

    `order` is not bounds-checked; the board computes it.

    Raises:
        ValidationError: Column isn't in the user's workflow or order isn't
            an integer.
        NotFound: Card doesn't exist (e.g. deleted from another tab).
        ConflictError: expected_revision is stale.
    """
    require_user(user_id)
    order = to_int(order, "Order")

    card = get_card(user_id, card_id)
    check_revision(card, expected_revision, "Card")
    column = _require_column(user_id, column_id)

    from_column = card.column_id
    from_order = card.order
    card.column_id = column.id
    card.order = order
    card.revision += 1
    card.updated_at = datetime.now(timezone.utc)
    flush("move card")

    audit(
        user_id,
        "card.moved",
        card_id=card.id,
        from_column=from_column,
        from_order=from_order,
        to_column=column.id,
        to_order=order,
    )
    flush("move card")
    return card


def toggle_checked(user_id, card_id):
    """Flip the card's completion checkbox."""
    card = get_card(user_id, card_id)
    card.checked = not card.checked
    card.revision += 1
    card.updated_at = datetime.now(timezone.utc)
    flush("toggle card")
    return card


def delete_card(user_id, card_id):
    """Hard-delete a card. Irreversible; confirmation is the caller's job."""
    card = get_card(user_id, card_id)
    title = card.title
    db.session.delete(card)
    flush("delete card")

    audit(user_id, "card.deleted", card_id=card_id, title=title)
    flush("delete card")
