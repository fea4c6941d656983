"""Read-only lookups of the idea-capture side: ideas and series.

Used to fill the "start from idea" and series pickers of the card dialogs.
"""

from planboard.extensions import db
from planboard.models.idea import Idea, Series
from planboard.services.common import require_user


def list_ideas(user_id):
    require_user(user_id)
    return (
        Idea.query
        .filter_by(user_id=user_id)
        .order_by(Idea.created_at.desc())
        .all()
    )


def get_idea(user_id, idea_id):
    """Return the user's Idea or None."""
    require_user(user_id)
    if not idea_id or not isinstance(idea_id, str):
        return None
    idea = db.session.get(Idea, idea_id)
    if idea is None or idea.user_id != user_id:
        return None
    return idea


def list_series(user_id):
    require_user(user_id)
    return (
        Series.query
        .filter_by(user_id=user_id)
        .order_by(Series.name)
        .all()
    )


def get_series(user_id, series_id):
    """Return the user's Series or None."""
    require_user(user_id)
    if not series_id or not isinstance(series_id, str):
        return None
    series = db.session.get(Series, series_id)
    if series is None or series.user_id != user_id:
        return None
    return series
