"""Workflow models.

A user owns exactly one Workflow: an ordered, append-only list of columns
(the stages of their content pipeline). Each column carries a surrogate id
so two columns may share a display name without becoming ambiguous.

`revision` increases on every change and backs optimistic concurrency
checks (see workflow_service.append_column).
"""

import uuid

from planboard.extensions import db


class Workflow(db.Model):
    __tablename__ = "workflows"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), unique=True, nullable=False
    )
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
    user = db.relationship("User", back_populates="workflow")
    columns = db.relationship(
        "WorkflowColumn",
        back_populates="workflow",
        order_by="WorkflowColumn.position",
        cascade="all, delete-orphan",
    )

    @property
    def column_names(self):
        return [col.name for col in self.columns]

    @property
    def column_ids(self):
        return [col.id for col in self.columns]

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "revision": self.revision,
            "columns": [col.to_dict() for col in self.columns],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Workflow {self.user_id} {self.column_names}>"


class WorkflowColumn(db.Model):
    __tablename__ = "workflow_columns"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    workflow_id = db.Column(
        db.String(36),
        db.ForeignKey("workflows.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(255), nullable=False)
    position = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    workflow = db.relationship("Workflow", back_populates="columns")

    def to_dict(self):
        return {"id": self.id, "name": self.name, "position": self.position}

    def __repr__(self):
        return f"<WorkflowColumn {self.name}>"
