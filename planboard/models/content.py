"""Content card model.

A card is a unit of planned content sitting in exactly one workflow column.
`order` sorts cards within a column only; it is not unique and not global.
Position changes go through card_service.move_card and nowhere else.
"""

import uuid

from planboard.extensions import db


class ContentCard(db.Model):
    __tablename__ = "content_cards"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False, index=True
    )
    column_id = db.Column(
        db.String(36),
        db.ForeignKey("workflow_columns.id"),
        nullable=False,
        index=True,
    )
    order = db.Column(db.Integer, nullable=False, default=0)
    title = db.Column(db.String(500), nullable=False)
    description = db.Column(db.Text, nullable=True)
    platforms = db.Column(db.JSON, nullable=False, default=list)
    content_type = db.Column(db.String(100), nullable=True)
    series_id = db.Column(
        db.String(36), db.ForeignKey("series.id", ondelete="SET NULL"), nullable=True
    )
    idea_id = db.Column(
        db.String(36), db.ForeignKey("ideas.id", ondelete="SET NULL"), nullable=True
    )
    checked = db.Column(db.Boolean, nullable=False, default=False)
    revision = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    user = db.relationship("User", back_populates="content_cards")
    column = db.relationship("WorkflowColumn")
    series = db.relationship("Series", foreign_keys=[series_id])
    idea = db.relationship("Idea", foreign_keys=[idea_id])

    def to_dict(self):
        """Serialize to a JSON-safe dict, with idea/series summaries."""
        return {
            "id": self.id,
            "column_id": self.column_id,
            "order": self.order,
            "title": self.title,
            "description": self.description,
            "platforms": list(self.platforms or []),
            "content_type": self.content_type,
            "series_id": self.series_id,
            "idea_id": self.idea_id,
            "checked": bool(self.checked),
            "revision": self.revision,
            "series": (
                {"id": self.series.id, "name": self.series.name}
                if self.series else None
            ),
            "idea": (
                {"id": self.idea.id, "title": self.idea.title}
                if self.idea else None
            ),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<ContentCard {self.title[:40]}>"
