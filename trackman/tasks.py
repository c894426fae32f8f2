import logging
from flask import Blueprint, request

from .auth import get_owned_or_404, token_required
from .errors import ValidationError
from .models import Task
from .responses import date_arg, envelope, json_body, pagination, require_fields

logger = logging.getLogger(__name__)

bp = Blueprint("tasks", __name__, url_prefix="/api/tasks")


@bp.route("", methods=["GET"])
@token_required
def list_tasks(user):
    limit, offset = pagination()
    tasks = Task.find_by_user_id(
        user.id,
        limit=limit,
        offset=offset,
        status=request.args.get("status"),
        priority=request.args.get("priority"),
        category=request.args.get("category"),
        due_date=date_arg("dueDate"),
    )
    logger.debug(f"Fetched {len(tasks)} tasks for user {user.id}")
    return envelope([task.to_dict() for task in tasks], count=len(tasks))


@bp.route("/<task_id>", methods=["GET"])
@token_required
def get_task(user, task_id):
    task = get_owned_or_404(Task, task_id, user)
    data = task.to_dict()
    data["subtasks"] = [subtask.to_dict() for subtask in Task.find_subtasks(task.id)]
    return envelope(data)


@bp.route("", methods=["POST"])
@token_required
def create_task(user):
    data = json_body()
    logger.debug(f"Create task payload: {data}")
    require_fields(data, "title")
    parent_id = data.get("parent_task_id")
    if parent_id:
        parent = Task.find_by_id(parent_id)
        if not parent or parent.user_id != user.id:
            logger.warning(f"Rejected parent task {parent_id} for user {user.id}")
            raise ValidationError("Parent task not found or not authorized")
    task = Task.create(user.id, data)
    logger.info(f"Task created: {task.title} for user {user.id}")
    return envelope(task.to_dict(), message="Task created successfully", status=201)


@bp.route("/<task_id>", methods=["PUT"])
@token_required
def update_task(user, task_id):
    task = get_owned_or_404(Task, task_id, user, action="update")
    data = json_body()
    logger.debug(f"Update task {task_id} payload: {data}")
    task.update(data)
    logger.info(f"Task {task_id} updated for user {user.id}")
    return envelope(task.to_dict(), message="Task updated successfully")


@bp.route("/<task_id>", methods=["DELETE"])
@token_required
def delete_task(user, task_id):
    task = get_owned_or_404(Task, task_id, user, action="delete")
    logger.info(f"Deleting task {task_id} and {len(task.subtasks)} subtasks for user {user.id}")
    task.delete()
    return envelope(message="Task deleted successfully")


@bp.route("/<task_id>/complete", methods=["PUT"])
@token_required
def complete_task(user, task_id):
    task = get_owned_or_404(Task, task_id, user, action="update")
    data = json_body()
    changes = {"status": "completed"}
    if data.get("actual_duration_minutes") is not None:
        changes["actual_duration_minutes"] = data["actual_duration_minutes"]
    task.update(changes)
    logger.info(f"Task {task_id} completed by user {user.id}")
    return envelope(task.to_dict(), message="Task completed successfully")


@bp.route("/stats/overview", methods=["GET"])
@token_required
def task_stats(user):
    return envelope(Task.get_stats(user.id))


@bp.route("/overdue", methods=["GET"])
@token_required
def overdue_tasks(user):
    tasks = Task.get_overdue(user.id)
    return envelope([task.to_dict() for task in tasks], count=len(tasks))


@bp.route("/categories", methods=["GET"])
@token_required
def task_categories(user):
    return envelope(Task.get_categories(user.id))
