"""
API routes - submission, removal, provisioning state, processing status,
catalogs, dashboard and opportunities.

Every response uses the same envelope:
    {"success": true,  "message": str, "data": ..., "timestamp": iso}
    {"success": false, "error": str, "timestamp": iso}
"""

from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify, request

from nk_core.errors import ValidationError

bp = Blueprint('api', __name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def success_response(data=None, message="Success", status=200):
    return jsonify({
        "success": True,
        "message": message,
        "data": data,
        "timestamp": _timestamp(),
    }), status


def error_response(error, status=400):
    return jsonify({
        "success": False,
        "error": error,
        "timestamp": _timestamp(),
    }), status


def get_service():
    return current_app.config['PROVISIONING_SERVICE']


@bp.route("/negative-keywords", methods=["POST"])
def add_negative_keywords():
    """
    Queue negative keywords for the worker.

    Request JSON:
        {"keywords": [{"text", "matchType", "level", "campaignId", "adGroupId", "sharedListId", ...}]}

    Returns JSON (data):
        {"added": int, "failed": int, "errors": [str], "ids": [str]}
    """
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return error_response("Request body must be a JSON object", 400)

    try:
        result = get_service().submit(body.get("keywords"))
    except ValidationError as e:
        return error_response(str(e), 400)

    if result.added == 0:
        if result.admission_failed:
            return error_response("Storage errors: " + "; ".join(result.errors), 503)
        return error_response("Validation errors: " + "; ".join(result.errors), 400)

    return success_response(result.to_dict(), result.message)


@bp.route("/negative-keywords", methods=["GET"])
def get_negative_keywords():
    return success_response(get_service().get_provisioning_state(), "Negative keywords retrieved")


@bp.route("/negative-keywords/<request_id>", methods=["DELETE"])
def remove_negative_keyword(request_id):
    if not get_service().remove(request_id):
        return error_response(f"Negative keyword not found: {request_id}", 404)
    return success_response({"id": request_id}, "Negative keyword removed successfully")


@bp.route("/processing-status", methods=["GET"])
def processing_status():
    return success_response(get_service().get_processing_status(), "Processing status retrieved")


@bp.route("/process-keywords", methods=["POST"])
def process_keywords():
    data = get_service().request_processing()
    return success_response(data, "Processing requested. The worker will pick it up on its next run.")


@bp.route("/campaigns", methods=["GET"])
def campaigns():
    return success_response(get_service().get_campaigns(), "Campaigns retrieved")


@bp.route("/shared-lists", methods=["GET"])
def shared_lists():
    return success_response(get_service().get_shared_lists(), "Shared lists retrieved")


@bp.route("/dashboard", methods=["GET"])
def dashboard():
    return success_response(get_service().get_dashboard(), "Dashboard metrics retrieved")


@bp.route("/opportunities", methods=["GET"])
def opportunities():
    limit = request.args.get("limit", type=int)
    if limit is not None and limit < 0:
        return error_response("limit must be >= 0", 400)
    return success_response(get_service().get_opportunities(limit=limit), "Opportunities retrieved")
