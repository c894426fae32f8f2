import logging
from datetime import timedelta
from flask import Blueprint, request
from sqlalchemy import func

from . import models
from .auth import get_owned_or_404, token_required
from .errors import ValidationError
from .models import Habit, HabitCompletion, db
from .responses import bool_arg, date_arg, envelope, json_body, pagination, require_fields

logger = logging.getLogger(__name__)

bp = Blueprint("habits", __name__, url_prefix="/api/habits")

ANALYSIS_DAYS = 30
EXPECTED_PERIODS = {"daily": 30, "weekly": 4, "monthly": 1}


def period_start(day, frequency):
    if frequency == "weekly":
        return day - timedelta(days=day.weekday())
    if frequency == "monthly":
        return day.replace(day=1)
    return day


def previous_period(start, frequency):
    if frequency == "weekly":
        return start - timedelta(days=7)
    if frequency == "monthly":
        return (start - timedelta(days=1)).replace(day=1)
    return start - timedelta(days=1)


# Calculate streak
def calculate_streak(habit, today=None):
    """Count consecutive periods with a completion, ending in the current one."""
    today = today or models.today()
    periods = sorted({period_start(day, habit.frequency) for day in habit.completion_dates()}, reverse=True)
    expected = period_start(today, habit.frequency)
    streak = 0
    for period in periods:
        if period > expected:
            continue
        if period != expected:
            break
        streak += 1
        expected = previous_period(expected, habit.frequency)
    return streak


def _habit_dict(habit):
    data = habit.to_dict()
    data["streak"] = calculate_streak(habit)
    return data


@bp.route("", methods=["GET"])
@token_required
def list_habits(user):
    limit, offset = pagination()
    habits = Habit.find_by_user_id(user.id, limit=limit, offset=offset,
                                   is_active=bool_arg("active"), category=request.args.get("category"))
    logger.debug(f"Fetched {len(habits)} habits for user {user.id}")
    return envelope([_habit_dict(habit) for habit in habits], count=len(habits))


@bp.route("", methods=["POST"])
@token_required
def create_habit(user):
    data = json_body()
    logger.debug(f"Create habit payload: {data}")
    require_fields(data, "name", "frequency")
    habit = Habit.create(user.id, data)
    logger.info(f"Habit created: {habit.name} for user {user.id}")
    return envelope(_habit_dict(habit), message="Habit created successfully", status=201)


@bp.route("/<habit_id>", methods=["GET"])
@token_required
def get_habit(user, habit_id):
    return envelope(_habit_dict(get_owned_or_404(Habit, habit_id, user)))


@bp.route("/<habit_id>", methods=["PUT"])
@token_required
def update_habit(user, habit_id):
    habit = get_owned_or_404(Habit, habit_id, user, action="update")
    data = json_body()
    logger.debug(f"Update habit {habit_id} payload: {data}")
    habit.update(data)
    logger.info(f"Habit {habit_id} updated for user {user.id}")
    return envelope(_habit_dict(habit), message="Habit updated successfully")


@bp.route("/<habit_id>", methods=["DELETE"])
@token_required
def delete_habit(user, habit_id):
    habit = get_owned_or_404(Habit, habit_id, user, action="delete")
    logger.info(f"Deleting habit {habit_id} for user {user.id}")
    habit.delete()
    return envelope(message="Habit deleted successfully")


# Completion logging
@bp.route("/<habit_id>/log", methods=["POST"])
@token_required
def log_completion(user, habit_id):
    habit = get_owned_or_404(Habit, habit_id, user, action="update")
    data = json_body()
    on_date = HabitCompletion.coerce("date", data.get("date"))
    count = HabitCompletion.coerce("count", data.get("count", 1))
    if count is None or count < 1:
        raise ValidationError("Count must be a positive integer")
    completion = habit.log_completion(on_date=on_date, count=count, notes=data.get("notes"))
    logger.info(f"Completion logged for habit {habit_id} on {completion.date} by user {user.id}")
    return envelope({"completion": completion.to_dict(), "streak": calculate_streak(habit)},
                    message="Habit completion logged", status=201)


# Get completion history
@bp.route("/<habit_id>/history", methods=["GET"])
@token_required
def get_history(user, habit_id):
    habit = get_owned_or_404(Habit, habit_id, user)
    completions = habit.history(date_arg("startDate"), date_arg("endDate"))
    logger.debug(f"Fetched history for habit {habit_id}: {len(completions)} completions")
    return envelope([completion.to_dict() for completion in completions], count=len(completions))


# Analysis endpoint
@bp.route("/analysis", methods=["GET"])
@token_required
def get_analysis(user):
    habits = Habit.query.filter_by(user_id=user.id).order_by(Habit.name).all()
    end_date = models.today()
    start_date = end_date - timedelta(days=ANALYSIS_DAYS)
    trend_labels = [(start_date + timedelta(days=i)).isoformat() for i in range(ANALYSIS_DAYS + 1)]
    trend_data = {habit.id: [0] * (ANALYSIS_DAYS + 1) for habit in habits}
    habit_data = []

    for habit in habits:
        total_completions = db.session.query(func.coalesce(func.sum(HabitCompletion.count), 0)).filter(
            HabitCompletion.habit_id == habit.id
        ).scalar()

        completions = habit.history(start_date, end_date)
        for completion in completions:
            trend_data[habit.id][(completion.date - start_date).days] += completion.count

        actual_periods = len({period_start(c.date, habit.frequency) for c in completions})
        expected_periods = EXPECTED_PERIODS[habit.frequency]
        completion_rate = min(1.0, actual_periods / expected_periods)

        habit_data.append({
            "id": habit.id,
            "name": habit.name,
            "frequency": habit.frequency,
            "total_completions": total_completions,
            "completion_rate": round(completion_rate, 3),
            "streak": calculate_streak(habit, end_date),
        })

    logger.debug(f"Analysis fetched for user {user.id}: {len(habit_data)} habits")
    return envelope({
        "habits": habit_data,
        "trends": {
            "labels": trend_labels,
            "data": trend_data,
        },
    })
