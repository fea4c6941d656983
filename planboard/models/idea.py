"""Idea and Series models.

Both belong to the idea-capture side of the product. The planning board
only reads them: ideas prefill new cards, series label cards.
"""

import uuid

from planboard.extensions import db


class Series(db.Model):
    __tablename__ = "series"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False, index=True
    )
    name = db.Column(db.String(255), nullable=False)
    target_platform = db.Column(db.String(50), nullable=True)
    total_items = db.Column(db.Integer, nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "target_platform": self.target_platform,
            "total_items": self.total_items,
        }

    def __repr__(self):
        return f"<Series {self.name}>"


class Idea(db.Model):
    __tablename__ = "ideas"

    STATUSES = ["dumped", "refined", "planned", "scripted"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False, index=True
    )
    title = db.Column(db.String(500), nullable=False)
    raw_text = db.Column(db.Text, nullable=True)
    linked_series_id = db.Column(
        db.String(36), db.ForeignKey("series.id", ondelete="SET NULL"), nullable=True
    )
    target_platform = db.Column(db.String(50), nullable=True)
    status = db.Column(db.String(20), nullable=False, default="dumped")
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    linked_series = db.relationship("Series", foreign_keys=[linked_series_id])

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "raw_text": self.raw_text,
            "linked_series_id": self.linked_series_id,
            "target_platform": self.target_platform,
            "status": self.status,
        }

    def __repr__(self):
        return f"<Idea {self.title[:40]}>"
