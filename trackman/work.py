import logging
from flask import Blueprint, request

from .auth import get_owned_or_404, token_required
from .models import WorkEntry
from .responses import bool_arg, date_arg, envelope, json_body, pagination, require_fields

logger = logging.getLogger(__name__)

bp = Blueprint("work", __name__, url_prefix="/api/work")


@bp.route("", methods=["GET"])
@token_required
def list_entries(user):
    limit, offset = pagination()
    entries = WorkEntry.find_by_user_id(
        user.id,
        limit=limit,
        offset=offset,
        type=request.args.get("type"),
        project=request.args.get("project"),
        billable=bool_arg("billable"),
        start_date=date_arg("startDate"),
        end_date=date_arg("endDate"),
    )
    logger.debug(f"Fetched {len(entries)} work entries for user {user.id}")
    return envelope([entry.to_dict() for entry in entries], count=len(entries))


@bp.route("/<entry_id>", methods=["GET"])
@token_required
def get_entry(user, entry_id):
    return envelope(get_owned_or_404(WorkEntry, entry_id, user).to_dict())


@bp.route("", methods=["POST"])
@token_required
def create_entry(user):
    data = json_body()
    require_fields(data, "type", "title", "date")
    entry = WorkEntry.create(user.id, data)
    logger.info(f"Work entry created: {entry.type} {entry.title} for user {user.id}")
    return envelope(entry.to_dict(), message="Work entry created successfully", status=201)


@bp.route("/<entry_id>", methods=["PUT"])
@token_required
def update_entry(user, entry_id):
    entry = get_owned_or_404(WorkEntry, entry_id, user, action="update")
    entry.update(json_body())
    logger.info(f"Work entry {entry_id} updated for user {user.id}")
    return envelope(entry.to_dict(), message="Work entry updated successfully")


@bp.route("/<entry_id>", methods=["DELETE"])
@token_required
def delete_entry(user, entry_id):
    entry = get_owned_or_404(WorkEntry, entry_id, user, action="delete")
    entry.delete()
    logger.info(f"Work entry {entry_id} deleted by user {user.id}")
    return envelope(message="Work entry deleted successfully")


@bp.route("/stats/overview", methods=["GET"])
@token_required
def work_stats(user):
    return envelope(WorkEntry.get_stats(user.id, date_arg("startDate"), date_arg("endDate")))
