"""User model.

Users are provisioned by the external identity provider; this table only
mirrors who they are and the API token their clients authenticate with.
Flask-Login integration via UserMixin.
"""

import uuid

from flask_login import UserMixin

from planboard.extensions import db


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    email = db.Column(db.String(255), unique=True, nullable=False)
    full_name = db.Column(db.String(255))
    api_token = db.Column(db.String(128), unique=True, nullable=True)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    workflow = db.relationship(
        "Workflow", back_populates="user", uselist=False
    )
    content_cards = db.relationship(
        "ContentCard", back_populates="user", lazy="dynamic"
    )
    audit_events = db.relationship(
        "AuditEvent", back_populates="actor", lazy="dynamic"
    )

    def __repr__(self):
        return f"<User {self.email}>"
