"""Shared test fixtures for the planning board test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite, CSRF off)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- seed_data: a creator with an API token, a second user, series and ideas
- workflow: the creator's workflow, columns ["Idea", "In Progress", "Done"]
"""

import pytest

from planboard import create_app
from planboard.extensions import db as _db
from planboard.models.idea import Idea, Series
from planboard.models.user import User
from planboard.services import workflow_service


@pytest.fixture(scope="session")
def app():
    """Create the Flask application configured for testing."""
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Create all tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture
def seed_data(db_session):
    """Seed a creator, an unrelated user, one series and two ideas.

    Returns a dict of plain ids/tokens so tests don't depend on objects
    staying attached to a session.
    """
    creator = User(
        email="creator@planboard.local",
        full_name="Casey Creator",
        api_token="test-token-creator",
    )
    other = User(
        email="other@planboard.local",
        full_name="Other User",
        api_token="test-token-other",
    )
    db_session.add_all([creator, other])
    db_session.flush()

    series = Series(
        user_id=creator.id,
        name="Creator Tips",
        target_platform="youtube",
        total_items=5,
    )
    db_session.add(series)
    db_session.flush()

    idea = Idea(
        user_id=creator.id,
        title="My idea",
        raw_text="Notes for the idea",
        linked_series_id=series.id,
        target_platform="twitter",
        status="refined",
    )
    bare_idea = Idea(
        user_id=creator.id,
        title="Platformless idea",
        status="dumped",
    )
    other_idea = Idea(
        user_id=other.id,
        title="Someone else's idea",
        target_platform="youtube",
        status="dumped",
    )
    db_session.add_all([idea, bare_idea, other_idea])
    db_session.commit()

    return {
        "user_id": creator.id,
        "token": creator.api_token,
        "other_id": other.id,
        "other_token": other.api_token,
        "series_id": series.id,
        "idea_id": idea.id,
        "bare_idea_id": bare_idea.id,
        "other_idea_id": other_idea.id,
    }


@pytest.fixture
def workflow(seed_data, db_session):
    """The creator's workflow with columns Idea / In Progress / Done.

    Returns {"id", "revision", "columns": {name: column_id}}.
    """
    wf = workflow_service.create_workflow(
        seed_data["user_id"], columns=["Idea", "In Progress", "Done"]
    )
    db_session.commit()
    return {
        "id": wf.id,
        "revision": wf.revision,
        "columns": {col.name: col.id for col in wf.columns},
    }


@pytest.fixture
def auth_headers(seed_data):
    return {"Authorization": f"Bearer {seed_data['token']}"}
