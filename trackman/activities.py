import logging
from flask import Blueprint, request

from .auth import get_owned_or_404, token_required
from .models import Activity
from .responses import date_arg, envelope, int_arg, json_body, pagination, require_fields

logger = logging.getLogger(__name__)

bp = Blueprint("activities", __name__, url_prefix="/api/activities")


@bp.route("", methods=["GET"])
@token_required
def list_activities(user):
    limit, offset = pagination()
    activities = Activity.find_by_user_id(
        user.id,
        limit=limit,
        offset=offset,
        category=request.args.get("category"),
        start_date=date_arg("startDate"),
        end_date=date_arg("endDate"),
    )
    logger.debug(f"Fetched {len(activities)} activities for user {user.id}")
    return envelope([activity.to_dict() for activity in activities], count=len(activities))


@bp.route("/<activity_id>", methods=["GET"])
@token_required
def get_activity(user, activity_id):
    activity = get_owned_or_404(Activity, activity_id, user)
    return envelope(activity.to_dict())


@bp.route("", methods=["POST"])
@token_required
def create_activity(user):
    data = json_body()
    logger.debug(f"Create activity payload: {data}")
    require_fields(data, "title", "category", "date")
    activity = Activity.create(user.id, data)
    logger.info(f"Activity created: {activity.title} for user {user.id}")
    return envelope(activity.to_dict(), message="Activity created successfully", status=201)


@bp.route("/<activity_id>", methods=["PUT"])
@token_required
def update_activity(user, activity_id):
    activity = get_owned_or_404(Activity, activity_id, user, action="update")
    data = json_body()
    logger.debug(f"Update activity {activity_id} payload: {data}")
    activity.update(data)
    logger.info(f"Activity {activity_id} updated for user {user.id}")
    return envelope(activity.to_dict(), message="Activity updated successfully")


@bp.route("/<activity_id>", methods=["DELETE"])
@token_required
def delete_activity(user, activity_id):
    activity = get_owned_or_404(Activity, activity_id, user, action="delete")
    activity.delete()
    logger.info(f"Activity {activity_id} deleted by user {user.id}")
    return envelope(message="Activity deleted successfully")


@bp.route("/stats/overview", methods=["GET"])
@token_required
def activity_stats(user):
    return envelope(Activity.get_stats(user.id, date_arg("startDate"), date_arg("endDate")))


@bp.route("/stats/daily", methods=["GET"])
@token_required
def daily_stats(user):
    return envelope(Activity.get_daily_stats(user.id, int_arg("days", 30)))


@bp.route("/categories", methods=["GET"])
@token_required
def activity_categories(user):
    return envelope(Activity.get_categories(user.id))
