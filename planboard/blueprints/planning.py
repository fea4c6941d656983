"""Planning blueprint: /api/planning/*

JSON API behind the content-planning board: the user's workflow, their
content cards, and the idea/series pickers. Every route is scoped to the
authenticated user (session cookie or Bearer API token).

Services raise the planning error taxonomy; the app-level error handler
rolls back and renders it as JSON.

Route Map:
  GET    /api/planning/presets                  Preset workflows + vocab
  GET    /api/planning/content-types            Types for ?platforms=a,b
  GET    /api/planning/workflow                 Current workflow (404 if none)
  POST   /api/planning/workflow                 Create workflow (onboarding)
  POST   /api/planning/workflow/columns         Append column
  GET    /api/planning/cards                    All cards
  POST   /api/planning/cards                    Create card
  POST   /api/planning/cards/from-idea          Create card from idea
  PATCH  /api/planning/cards/<id>               Edit card content
  PUT    /api/planning/cards/<id>/move          Move card (column + order)
  POST   /api/planning/cards/<id>/toggle        Toggle completion checkbox
  DELETE /api/planning/cards/<id>?confirm=true  Delete card
  GET    /api/planning/ideas                    Idea picker
  GET    /api/planning/ideas/<id>/prefill       Create-dialog prefill
  GET    /api/planning/series                   Series picker
"""

import logging

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user
from sqlalchemy.exc import SQLAlchemyError

from planboard.decorators import api_login_required
from planboard.errors import PersistenceError, ValidationError
from planboard.extensions import db, limiter
from planboard.presets import (
    CONTENT_TYPES,
    PLATFORMS,
    PRESET_WORKFLOWS,
    content_types_for_platforms,
)
from planboard.services import card_service, lookup_service, workflow_service

logger = logging.getLogger(__name__)

planning_bp = Blueprint("planning", __name__, url_prefix="/api/planning")


def _write_limit():
    return current_app.config["PLANNING_WRITE_RATE_LIMIT"]


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    return data


def _commit(action):
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Commit failed while trying to {action}: {e}", exc_info=True)
        raise PersistenceError(f"Failed to {action}.") from e


# ─── Vocabulary ──────────────────────────────────────────────────

@planning_bp.route("/presets")
@api_login_required
def api_presets():
    return jsonify({
        "presets": PRESET_WORKFLOWS,
        "platforms": list(PLATFORMS),
        "content_types": CONTENT_TYPES,
        "max_custom_columns": current_app.config["PLANNING_MAX_CUSTOM_COLUMNS"],
    })


@planning_bp.route("/content-types")
@api_login_required
def api_content_types():
    raw = request.args.get("platforms", "")
    platforms = [p.strip() for p in raw.split(",") if p.strip()]
    return jsonify(content_types_for_platforms(platforms))


# ─── Workflow API ────────────────────────────────────────────────

@planning_bp.route("/workflow")
@api_login_required
def api_get_workflow():
    workflow = workflow_service.require_workflow(current_user.id)
    return jsonify(workflow.to_dict())


@planning_bp.route("/workflow", methods=["POST"])
@api_login_required
@limiter.limit(_write_limit)
def api_create_workflow():
    data = _json_body()
    workflow = workflow_service.create_workflow(
        current_user.id,
        columns=data.get("columns"),
        preset=data.get("preset"),
        max_columns=current_app.config["PLANNING_MAX_CUSTOM_COLUMNS"],
    )
    _commit("create workflow")
    return jsonify(workflow.to_dict()), 201


@planning_bp.route("/workflow/columns", methods=["POST"])
@api_login_required
@limiter.limit(_write_limit)
def api_append_column():
    data = _json_body()
    column = workflow_service.append_column(
        current_user.id,
        data.get("name"),
        expected_revision=data.get("expected_revision"),
    )
    _commit("add column")
    return jsonify({
        "column": column.to_dict(),
        "workflow": column.workflow.to_dict(),
    }), 201


# ─── Card API ────────────────────────────────────────────────────

@planning_bp.route("/cards")
@api_login_required
def api_list_cards():
    cards = card_service.list_cards(current_user.id)
    return jsonify([c.to_dict() for c in cards])


@planning_bp.route("/cards", methods=["POST"])
@api_login_required
@limiter.limit(_write_limit)
def api_create_card():
    data = _json_body()
    card = card_service.create_card(
        current_user.id,
        title=data.get("title"),
        platforms=data.get("platforms"),
        column_id=data.get("column_id"),
        description=data.get("description"),
        content_type=data.get("content_type"),
        series_id=data.get("series_id"),
        idea_id=data.get("idea_id"),
        order=data.get("order"),
    )
    _commit("create content card")
    return jsonify(card.to_dict()), 201


@planning_bp.route("/cards/from-idea", methods=["POST"])
@api_login_required
@limiter.limit(_write_limit)
def api_create_card_from_idea():
    data = _json_body()
    card = card_service.create_card_from_idea(
        current_user.id, data.get("idea_id"), data.get("column_id")
    )
    _commit("create content card")
    return jsonify(card.to_dict()), 201


@planning_bp.route("/cards/<card_id>", methods=["PATCH"])
@api_login_required
@limiter.limit(_write_limit)
def api_update_card(card_id):
    data = _json_body()
    expected_revision = data.pop("expected_revision", None)
    card = card_service.update_card(
        current_user.id, card_id, data, expected_revision=expected_revision
    )
    _commit("update content card")
    return jsonify(card.to_dict())


@planning_bp.route("/cards/<card_id>/move", methods=["PUT"])
@api_login_required
@limiter.limit(_write_limit)
def api_move_card(card_id):
    data = _json_body()
    if "column_id" not in data or "order" not in data:
        raise ValidationError("column_id and order are required.")
    card = card_service.move_card(
        current_user.id,
        card_id,
        data["column_id"],
        data["order"],
        expected_revision=data.get("expected_revision"),
    )
    _commit("move card")
    return jsonify(card.to_dict())


@planning_bp.route("/cards/<card_id>/toggle", methods=["POST"])
@api_login_required
@limiter.limit(_write_limit)
def api_toggle_card(card_id):
    card = card_service.toggle_checked(current_user.id, card_id)
    _commit("toggle card")
    return jsonify(card.to_dict())


@planning_bp.route("/cards/<card_id>", methods=["DELETE"])
@api_login_required
@limiter.limit(_write_limit)
def api_delete_card(card_id):
    if request.args.get("confirm", "").lower() not in ("1", "true", "yes"):
        raise ValidationError(
            "Deleting a card is permanent. Confirm with ?confirm=true.",
            code="confirmation_required",
        )
    card_service.delete_card(current_user.id, card_id)
    _commit("delete card")
    return jsonify({"success": True})


# ─── Lookups ─────────────────────────────────────────────────────

@planning_bp.route("/ideas")
@api_login_required
def api_list_ideas():
    ideas = lookup_service.list_ideas(current_user.id)
    return jsonify([i.to_dict() for i in ideas])


@planning_bp.route("/ideas/<idea_id>/prefill")
@api_login_required
def api_idea_prefill(idea_id):
    return jsonify(card_service.idea_prefill(current_user.id, idea_id))


@planning_bp.route("/series")
@api_login_required
def api_list_series():
    series = lookup_service.list_series(current_user.id)
    return jsonify([s.to_dict() for s in series])
