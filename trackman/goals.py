import logging
from flask import Blueprint, request

from .auth import get_owned_or_404, token_required
from .models import Goal
from .responses import envelope, json_body, pagination, require_fields

logger = logging.getLogger(__name__)

bp = Blueprint("goals", __name__, url_prefix="/api/goals")


@bp.route("", methods=["GET"])
@token_required
def list_goals(user):
    limit, offset = pagination()
    goals = Goal.find_by_user_id(
        user.id,
        limit=limit,
        offset=offset,
        status=request.args.get("status"),
        category=request.args.get("category"),
    )
    return envelope([goal.to_dict() for goal in goals], count=len(goals))


@bp.route("/<goal_id>", methods=["GET"])
@token_required
def get_goal(user, goal_id):
    return envelope(get_owned_or_404(Goal, goal_id, user).to_dict())


@bp.route("", methods=["POST"])
@token_required
def create_goal(user):
    data = json_body()
    require_fields(data, "title", "category")
    goal = Goal.create(user.id, data)
    logger.info(f"Goal created: {goal.title} for user {user.id}")
    return envelope(goal.to_dict(), message="Goal created successfully", status=201)


@bp.route("/<goal_id>", methods=["PUT"])
@token_required
def update_goal(user, goal_id):
    goal = get_owned_or_404(Goal, goal_id, user, action="update")
    goal.update(json_body())
    logger.info(f"Goal {goal_id} updated for user {user.id}")
    return envelope(goal.to_dict(), message="Goal updated successfully")


@bp.route("/<goal_id>/progress", methods=["PUT"])
@token_required
def record_progress(user, goal_id):
    goal = get_owned_or_404(Goal, goal_id, user, action="update")
    data = json_body()
    require_fields(data, "current_value")
    goal.record_progress(data["current_value"])
    logger.info(f"Goal {goal_id} progress set to {goal.current_value} ({goal.status})")
    return envelope(goal.to_dict(), message="Goal progress updated")


@bp.route("/<goal_id>", methods=["DELETE"])
@token_required
def delete_goal(user, goal_id):
    goal = get_owned_or_404(Goal, goal_id, user, action="delete")
    goal.delete()
    logger.info(f"Goal {goal_id} deleted by user {user.id}")
    return envelope(message="Goal deleted successfully")


@bp.route("/stats/overview", methods=["GET"])
@token_required
def goal_stats(user):
    return envelope(Goal.get_stats(user.id))
