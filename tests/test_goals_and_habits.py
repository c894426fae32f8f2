from datetime import date, timedelta
from types import SimpleNamespace

import pytest

from trackman.habits import calculate_streak, period_start
from trackman.models import today


def test_goal_progress_completes_at_target(client, auth):
    goal = client.post("/api/goals", headers=auth, json={
        "title": "Read books", "category": "Learning", "target_value": 12, "unit": "books",
    }).get_json()["data"]

    halfway = client.put(f"/api/goals/{goal['id']}/progress", headers=auth, json={"current_value": 6}).get_json()
    done = client.put(f"/api/goals/{goal['id']}/progress", headers=auth, json={"current_value": 13}).get_json()

    assert goal["status"] == "active"
    assert goal["progress"] == 0.0
    assert halfway["data"]["progress"] == 50.0
    assert halfway["data"]["status"] == "active"
    assert done["data"]["progress"] == 100.0
    assert done["data"]["status"] == "completed"


def test_goal_validation_and_stats(client, auth):
    missing = client.post("/api/goals", headers=auth, json={"title": "No category"})
    client.post("/api/goals", headers=auth, json={"title": "Run", "category": "Health"})
    client.post("/api/goals", headers=auth, json={"title": "Save", "category": "Finance", "status": "paused"})

    stats = client.get("/api/goals/stats/overview", headers=auth).get_json()["data"]
    paused = client.get("/api/goals?status=paused", headers=auth).get_json()["data"]

    assert missing.status_code == 400
    assert stats == {"active": 1, "completed": 0, "paused": 1, "cancelled": 0, "total": 2}
    assert [g["title"] for g in paused] == ["Save"]


def test_goal_ownership(client, auth, other_auth):
    goal = client.post("/api/goals", headers=auth, json={"title": "Run", "category": "Health"}).get_json()["data"]

    assert client.delete(f"/api/goals/{goal['id']}", headers=other_auth).status_code == 403
    assert client.delete(f"/api/goals/{goal['id']}", headers=auth).status_code == 200


@pytest.mark.parametrize("frequency, day, expected", [
    ("daily", date(2024, 5, 15), date(2024, 5, 15)),
    ("weekly", date(2024, 5, 15), date(2024, 5, 13)),
    ("monthly", date(2024, 5, 15), date(2024, 5, 1)),
])
def test_period_start(frequency, day, expected):
    assert period_start(day, frequency) == expected


def fake_habit(frequency, days):
    return SimpleNamespace(frequency=frequency, completion_dates=lambda: days)


def test_daily_streak_stops_at_first_gap():
    now = date(2024, 5, 15)
    days = [now, now - timedelta(days=1), now - timedelta(days=2), now - timedelta(days=4)]

    assert calculate_streak(fake_habit("daily", days), now) == 3


def test_daily_streak_is_zero_without_today():
    now = date(2024, 5, 15)

    assert calculate_streak(fake_habit("daily", [now - timedelta(days=1)]), now) == 0


def test_weekly_and_monthly_streaks():
    now = date(2024, 5, 15)
    weekly = [date(2024, 5, 14), date(2024, 5, 8), date(2024, 5, 6), date(2024, 4, 22)]
    monthly = [date(2024, 5, 2), date(2024, 4, 30), date(2024, 3, 1), date(2024, 1, 1)]

    assert calculate_streak(fake_habit("weekly", weekly), now) == 2
    assert calculate_streak(fake_habit("monthly", monthly), now) == 3


def test_habit_log_history_and_streak(client, auth):
    habit = client.post("/api/habits", headers=auth, json={"name": "Meditate", "frequency": "Daily"}).get_json()["data"]
    yesterday = (today() - timedelta(days=1)).isoformat()

    client.post(f"/api/habits/{habit['id']}/log", headers=auth, json={"date": yesterday})
    logged = client.post(f"/api/habits/{habit['id']}/log", headers=auth, json={"notes": "10 minutes"})
    again = client.post(f"/api/habits/{habit['id']}/log", headers=auth, json={"count": 2})
    history = client.get(f"/api/habits/{habit['id']}/history", headers=auth).get_json()

    assert habit["frequency"] == "daily"
    assert habit["streak"] == 0
    assert logged.status_code == 201
    assert logged.get_json()["data"]["streak"] == 2
    assert again.get_json()["data"]["completion"]["count"] == 3
    assert history["count"] == 2
    assert history["data"][0]["notes"] == "10 minutes"


def test_habit_log_rejects_bad_count(client, auth):
    habit = client.post("/api/habits", headers=auth, json={"name": "Stretch", "frequency": "daily"}).get_json()["data"]

    assert client.post(f"/api/habits/{habit['id']}/log", headers=auth, json={"count": 0}).status_code == 400
    assert client.post(f"/api/habits/{habit['id']}/log", headers=auth, json={"date": "soon"}).status_code == 400


def test_habit_validation_and_active_filter(client, auth):
    bad = client.post("/api/habits", headers=auth, json={"name": "Run", "frequency": "hourly"})
    habit = client.post("/api/habits", headers=auth, json={"name": "Run", "frequency": "weekly"}).get_json()["data"]
    client.put(f"/api/habits/{habit['id']}", headers=auth, json={"is_active": False})

    assert bad.status_code == 400
    assert client.get("/api/habits?active=true", headers=auth).get_json()["data"] == []
    assert client.get("/api/habits?active=false", headers=auth).get_json()["count"] == 1


def test_habit_analysis(client, auth):
    habit = client.post("/api/habits", headers=auth, json={"name": "Walk", "frequency": "daily"}).get_json()["data"]
    for offset in (0, 1, 2):
        day = (today() - timedelta(days=offset)).isoformat()
        client.post(f"/api/habits/{habit['id']}/log", headers=auth, json={"date": day})
    client.post(f"/api/habits/{habit['id']}/log", headers=auth, json={"date": "2000-01-01"})

    data = client.get("/api/habits/analysis", headers=auth).get_json()["data"]
    summary = data["habits"][0]

    assert summary["total_completions"] == 4
    assert summary["completion_rate"] == round(3 / 30, 3)
    assert summary["streak"] == 3
    assert len(data["trends"]["labels"]) == 31
    assert data["trends"]["labels"][-1] == today().isoformat()
    assert data["trends"]["data"][habit["id"]][-3:] == [1, 1, 1]


def test_deleting_habit_removes_completions(client, auth):
    habit = client.post("/api/habits", headers=auth, json={"name": "Walk", "frequency": "daily"}).get_json()["data"]
    client.post(f"/api/habits/{habit['id']}/log", headers=auth, json={})

    assert client.delete(f"/api/habits/{habit['id']}", headers=auth).status_code == 200
    assert client.get(f"/api/habits/{habit['id']}/history", headers=auth).status_code == 404
