"""Server-rendered page shells for the tracking frontend.

Pages carry no data of their own: ``static/app.js`` loads and mutates
everything through the JSON API with the token kept in localStorage.
"""
from flask import Blueprint, render_template

from .auth import token_optional
from .models import HABIT_FREQUENCIES, HEALTH_TYPES, TASK_PRIORITIES, TASK_STATUSES, WORK_TYPES

bp = Blueprint("views", __name__)

NAV_ITEMS = [
    ("views.dashboard", "Dashboard"),
    ("views.activities", "Activities"),
    ("views.tasks", "Tasks"),
    ("views.health", "Health"),
    ("views.health_data", "Health Data"),
    ("views.work", "Work"),
]

ACTIVITY_CATEGORIES = ["Exercise", "Work", "Learning", "Social", "Hobby", "Chores", "Other"]
TASK_CATEGORIES = ["Work", "Personal", "Health", "Learning", "Finance", "Home", "Other"]
TASK_SORTS = [("due_date", "Due date"), ("priority", "Priority"), ("created_at", "Newest")]


def _render(template, page, user, **context):
    return render_template(template, page=page, nav_items=NAV_ITEMS, user=user, **context)


@bp.route("/")
@token_optional
def dashboard(user):
    return _render("dashboard.html", "dashboard", user)


@bp.route("/login")
@token_optional
def login(user):
    return _render("login.html", "login", user)


@bp.route("/activities")
@token_optional
def activities(user):
    return _render("activities.html", "activities", user, categories=ACTIVITY_CATEGORIES)


@bp.route("/tasks")
@token_optional
def tasks(user):
    return _render("tasks.html", "tasks", user, categories=TASK_CATEGORIES, statuses=TASK_STATUSES,
                   priorities=TASK_PRIORITIES, sorts=TASK_SORTS)


@bp.route("/health")
@token_optional
def health(user):
    return _render("health.html", "health", user, health_types=HEALTH_TYPES, frequencies=HABIT_FREQUENCIES)


@bp.route("/health-data")
@token_optional
def health_data(user):
    return _render("health_data.html", "health-data", user, health_types=HEALTH_TYPES)


@bp.route("/work")
@token_optional
def work(user):
    return _render("work.html", "work", user, work_types=WORK_TYPES)
