import json
import uuid
from datetime import date, datetime, timedelta, timezone

import bcrypt
from flask import current_app
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import func

from .errors import ValidationError

db = SQLAlchemy()

TASK_STATUSES = ("pending", "in_progress", "completed", "cancelled")
TASK_PRIORITIES = ("low", "medium", "high", "urgent")
HEALTH_TYPES = ("workout", "diet", "sleep", "mood", "weight", "measurement", "symptom")
WORK_TYPES = ("meeting", "project", "task", "break", "learning", "other")
GOAL_STATUSES = ("active", "completed", "paused", "cancelled")
GOAL_PRIORITIES = ("low", "medium", "high")
HABIT_FREQUENCIES = ("daily", "weekly", "monthly")

DEFAULT_PREFERENCES = {
    "theme": "system",
    "timezone": "UTC",
    "dateFormat": "YYYY-MM-DD",
    "timeFormat": "24h",
    "notifications": {"email": True, "push": True, "reminders": True},
    "privacy": {"profileVisibility": "private", "dataSharing": False},
}


def generate_id():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today():
    return utcnow().date()


def load_json(raw):
    return json.loads(raw) if raw else None


def merge_preferences(current, changes):
    merged = dict(current or {})
    for key, value in (changes or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_preferences(merged[key], value)
        else:
            merged[key] = value
    return merged


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    email = db.Column(db.String(255), unique=True, nullable=False)
    name = db.Column(db.String(120), nullable=False)
    password_hash = db.Column(db.String(128), nullable=False)
    avatar_url = db.Column(db.String(512))
    preferences = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow)

    activities = db.relationship("Activity", backref="user", lazy=True, cascade="all, delete-orphan")
    tasks = db.relationship("Task", backref="user", lazy=True, cascade="all, delete-orphan")
    health_entries = db.relationship("HealthEntry", backref="user", lazy=True, cascade="all, delete-orphan")
    work_entries = db.relationship("WorkEntry", backref="user", lazy=True, cascade="all, delete-orphan")
    goals = db.relationship("Goal", backref="user", lazy=True, cascade="all, delete-orphan")
    habits = db.relationship("Habit", backref="user", lazy=True, cascade="all, delete-orphan")
    habit_completions = db.relationship("HabitCompletion", backref="user", lazy=True, cascade="all, delete-orphan")

    __table_args__ = (db.Index("idx_users_email", "email"),)

    @staticmethod
    def normalize_email(email):
        return email.strip().lower()

    @classmethod
    def create(cls, email, name, password):
        user = cls(
            id=generate_id(),
            email=cls.normalize_email(email),
            name=name.strip(),
            preferences=json.dumps(DEFAULT_PREFERENCES),
        )
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user

    @classmethod
    def find_by_id(cls, user_id):
        return db.session.get(cls, user_id)

    @classmethod
    def find_by_email(cls, email):
        return cls.query.filter_by(email=cls.normalize_email(email)).first()

    def set_password(self, password):
        rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
        self.password_hash = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode("utf-8")
        self.updated_at = utcnow()

    def check_password(self, password):
        return bcrypt.checkpw(password.encode("utf-8"), self.password_hash.encode("utf-8"))

    def update(self, data):
        if data.get("name") is not None:
            self.name = data["name"].strip()
        if data.get("email") is not None:
            self.email = self.normalize_email(data["email"])
        if "avatar_url" in data:
            self.avatar_url = data["avatar_url"]
        if data.get("preferences") is not None:
            if not isinstance(data["preferences"], dict):
                raise ValidationError("Preferences must be an object")
            self.preferences = json.dumps(merge_preferences(load_json(self.preferences), data["preferences"]))
        self.updated_at = utcnow()
        db.session.commit()
        return self

    def delete(self):
        db.session.delete(self)
        db.session.commit()

    @staticmethod
    def get_stats(user_id):
        def count(model, *criteria):
            return model.query.filter(model.user_id == user_id, *criteria).count()

        return {
            "total_activities": count(Activity),
            "total_tasks": count(Task),
            "completed_tasks": count(Task, Task.status == "completed"),
            "total_health_entries": count(HealthEntry),
            "total_work_entries": count(WorkEntry),
            "active_habits": count(Habit, Habit.is_active.is_(True)),
            "active_goals": count(Goal, Goal.status == "active"),
        }

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "avatar_url": self.avatar_url,
            "preferences": load_json(self.preferences),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<User {self.email}>"


class OwnedResource:
    """Shared persistence for rows that belong to a single user.

    Subclasses list the columns a client may set on create (``FIELDS``) and on
    update (``EDITABLE``, defaults to ``FIELDS``). ``JSON_FIELDS`` are stored as
    serialized text and ``CHOICES`` restrict enum-like columns. ``REQUIRED``
    columns, like any NOT NULL column, can never be cleared by an update.
    """

    LABEL = "resource"
    FIELDS = ()
    EDITABLE = None
    REQUIRED = ()
    JSON_FIELDS = ()
    CHOICES = {}

    @classmethod
    def create(cls, user_id, data, **extra):
        resource = cls(id=generate_id(), user_id=user_id, **extra)
        resource.assign({k: v for k, v in data.items() if v is not None}, cls.FIELDS)
        db.session.add(resource)
        db.session.commit()
        return resource

    @classmethod
    def find_by_id(cls, resource_id):
        return db.session.get(cls, resource_id)

    @staticmethod
    def _attribute(name):
        return "metadata_" if name == "metadata" else name

    @classmethod
    def editable_fields(cls):
        return cls.FIELDS if cls.EDITABLE is None else cls.EDITABLE

    def assign(self, data, fields=None):
        for field in fields if fields is not None else self.editable_fields():
            if field not in data:
                continue
            required = field in self.REQUIRED or not self.__table__.columns[field].nullable
            if required and data[field] in (None, ""):
                raise ValidationError(f"{field.replace('_', ' ').capitalize()} cannot be empty")
            setattr(self, self._attribute(field), self.coerce(field, data[field]))
        self.updated_at = utcnow()
        return self

    def save(self):
        db.session.commit()
        return self

    def update(self, data):
        return self.assign(data).save()

    def delete(self):
        db.session.delete(self)
        db.session.commit()
        return True

    @classmethod
    def coerce(cls, field, value):
        if value is None:
            return None
        if field in cls.JSON_FIELDS:
            return json.dumps(value)
        if field in cls.CHOICES:
            if value not in cls.CHOICES[field]:
                raise ValidationError(f"{field.replace('_', ' ').capitalize()} must be one of: {', '.join(cls.CHOICES[field])}")
            return value
        column_type = cls.__table__.columns[field].type
        try:
            if isinstance(column_type, db.Date):
                return value if isinstance(value, date) else date.fromisoformat(str(value))
            if isinstance(column_type, db.Boolean):
                if isinstance(value, str):
                    if value.lower() not in ("true", "false", "1", "0"):
                        raise ValueError(value)
                    return value.lower() in ("true", "1")
                return bool(value)
            if isinstance(column_type, db.Integer):
                return int(value)
            if isinstance(column_type, db.Float):
                return float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid value for {field}")
        return str(value)

    def to_dict(self):
        result = {}
        for column in self.__table__.columns:
            value = getattr(self, self._attribute(column.name))
            if column.name in self.JSON_FIELDS:
                value = load_json(value)
            elif isinstance(value, (date, datetime)):
                value = value.isoformat()
            result[column.name] = value
        return result

    @classmethod
    def _date_range(cls, query, start_date=None, end_date=None):
        if start_date:
            query = query.filter(cls.date >= start_date)
        if end_date:
            query = query.filter(cls.date <= end_date)
        return query

    @classmethod
    def get_categories(cls, user_id):
        rows = (db.session.query(cls.category).distinct()
                .filter(cls.user_id == user_id, cls.category.isnot(None))
                .order_by(cls.category).all())
        return [row.category for row in rows]


class Activity(OwnedResource, db.Model):
    __tablename__ = "activities"

    LABEL = "activity"
    FIELDS = ("title", "description", "category", "duration_minutes", "date",
              "time_start", "time_end", "location", "tags", "metadata")
    REQUIRED = ("title", "category", "date")
    JSON_FIELDS = ("tags", "metadata")

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    category = db.Column(db.String(100), nullable=False)
    duration_minutes = db.Column(db.Integer)
    date = db.Column(db.Date, nullable=False)
    time_start = db.Column(db.String(8))
    time_end = db.Column(db.String(8))
    location = db.Column(db.String(200))
    tags = db.Column(db.Text)
    # "metadata" is reserved on declarative classes
    metadata_ = db.Column("metadata", db.Text)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow)

    __table_args__ = (
        db.Index("idx_activities_user_id", "user_id"),
        db.Index("idx_activities_date", "date"),
        db.Index("idx_activities_category", "category"),
    )

    @classmethod
    def find_by_user_id(cls, user_id, limit=50, offset=0, category=None, start_date=None, end_date=None):
        query = cls.query.filter(cls.user_id == user_id)
        if category:
            query = query.filter(cls.category == category)
        query = cls._date_range(query, start_date, end_date)
        return (query.order_by(cls.date.desc(), cls.time_start.desc(), cls.created_at.desc(), cls.id)
                .limit(limit).offset(offset).all())

    @classmethod
    def get_stats(cls, user_id, start_date=None, end_date=None):
        count = func.count(cls.id)
        query = db.session.query(
            cls.category,
            count.label("count"),
            func.sum(cls.duration_minutes).label("total_duration"),
            func.avg(cls.duration_minutes).label("avg_duration"),
        ).filter(cls.user_id == user_id)
        query = cls._date_range(query, start_date, end_date)
        rows = query.group_by(cls.category).order_by(count.desc()).all()
        return [{
            "category": row.category,
            "count": row.count,
            "total_duration": row.total_duration,
            "avg_duration": float(row.avg_duration) if row.avg_duration is not None else None,
        } for row in rows]

    @classmethod
    def get_daily_stats(cls, user_id, days=30):
        since = today() - timedelta(days=days)
        rows = (db.session.query(
                    cls.date,
                    func.count(cls.id).label("activity_count"),
                    func.sum(cls.duration_minutes).label("total_duration"))
                .filter(cls.user_id == user_id, cls.date >= since)
                .group_by(cls.date).order_by(cls.date.desc()).all())
        return [{
            "date": row.date.isoformat(),
            "activity_count": row.activity_count,
            "total_duration": row.total_duration,
        } for row in rows]


class Task(OwnedResource, db.Model):
    __tablename__ = "tasks"

    LABEL = "task"
    FIELDS = ("title", "description", "priority", "due_date", "estimated_duration_minutes",
              "category", "tags", "parent_task_id")
    EDITABLE = ("title", "description", "status", "priority", "due_date", "estimated_duration_minutes",
                "actual_duration_minutes", "category", "tags")
    REQUIRED = ("title", "status", "priority")
    JSON_FIELDS = ("tags",)
    CHOICES = {"status": TASK_STATUSES, "priority": TASK_PRIORITIES}

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    status = db.Column(db.String(20), nullable=False, default="pending")
    priority = db.Column(db.String(20), nullable=False, default="medium")
    due_date = db.Column(db.Date)
    estimated_duration_minutes = db.Column(db.Integer)
    actual_duration_minutes = db.Column(db.Integer)
    category = db.Column(db.String(100))
    tags = db.Column(db.Text)
    parent_task_id = db.Column(db.String(36), db.ForeignKey("tasks.id", ondelete="CASCADE"))
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow)
    completed_at = db.Column(db.DateTime)

    subtasks = db.relationship("Task", backref=db.backref("parent", remote_side=[id]),
                               lazy=True, cascade="all, delete-orphan")

    __table_args__ = (
        db.CheckConstraint("status IN ('pending', 'in_progress', 'completed', 'cancelled')", name="ck_tasks_status"),
        db.CheckConstraint("priority IN ('low', 'medium', 'high', 'urgent')", name="ck_tasks_priority"),
        db.Index("idx_tasks_user_id", "user_id"),
        db.Index("idx_tasks_status", "status"),
        db.Index("idx_tasks_due_date", "due_date"),
        db.Index("idx_tasks_parent", "parent_task_id"),
    )

    def update(self, data):
        previous_status = self.status
        self.assign(data)
        if self.status == "completed" and previous_status != "completed":
            self.completed_at = utcnow()
        elif self.status != "completed":
            self.completed_at = None
        return self.save()

    @classmethod
    def find_by_user_id(cls, user_id, limit=50, offset=0, status=None, priority=None, category=None, due_date=None):
        query = cls.query.filter(cls.user_id == user_id)
        if status:
            query = query.filter(cls.status == status)
        if priority:
            query = query.filter(cls.priority == priority)
        if category:
            query = query.filter(cls.category == category)
        if due_date:
            query = query.filter(cls.due_date <= due_date)
        return query.order_by(cls.created_at.desc(), cls.id).limit(limit).offset(offset).all()

    @classmethod
    def find_subtasks(cls, parent_task_id):
        return cls.query.filter_by(parent_task_id=parent_task_id).order_by(cls.created_at.asc(), cls.id).all()

    @classmethod
    def _overdue(cls, user_id):
        return cls.query.filter(
            cls.user_id == user_id,
            cls.status.notin_(["completed", "cancelled"]),
            cls.due_date < today(),
        )

    @classmethod
    def get_overdue(cls, user_id):
        return cls._overdue(user_id).order_by(cls.due_date.asc()).all()

    @classmethod
    def get_stats(cls, user_id):
        stats = {status: 0 for status in TASK_STATUSES}
        stats["total"] = 0
        for status, count in (db.session.query(cls.status, func.count(cls.id))
                              .filter(cls.user_id == user_id).group_by(cls.status)):
            stats[status] = count
            stats["total"] += count
        stats["overdue"] = cls._overdue(user_id).count()
        stats["by_priority"] = {priority: 0 for priority in TASK_PRIORITIES}
        for priority, count in (db.session.query(cls.priority, func.count(cls.id))
                                .filter(cls.user_id == user_id).group_by(cls.priority)):
            stats["by_priority"][priority] = count
        return stats


class HealthEntry(OwnedResource, db.Model):
    __tablename__ = "health_entries"

    LABEL = "health entry"
    FIELDS = ("type", "title", "description", "date", "time", "value", "unit", "category", "metadata")
    REQUIRED = ("type", "title", "date")
    JSON_FIELDS = ("metadata",)
    CHOICES = {"type": HEALTH_TYPES}

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = db.Column(db.String(20), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    date = db.Column(db.Date, nullable=False)
    time = db.Column(db.String(8))
    value = db.Column(db.Float)
    unit = db.Column(db.String(30))
    category = db.Column(db.String(100))
    metadata_ = db.Column("metadata", db.Text)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow)

    __table_args__ = (
        db.CheckConstraint(
            "type IN ('workout', 'diet', 'sleep', 'mood', 'weight', 'measurement', 'symptom')",
            name="ck_health_entries_type"),
        db.Index("idx_health_user_id", "user_id"),
        db.Index("idx_health_date", "date"),
        db.Index("idx_health_type", "type"),
    )

    @classmethod
    def find_by_user_id(cls, user_id, limit=50, offset=0, type=None, category=None, start_date=None, end_date=None):
        query = cls.query.filter(cls.user_id == user_id)
        if type:
            query = query.filter(cls.type == type)
        if category:
            query = query.filter(cls.category == category)
        query = cls._date_range(query, start_date, end_date)
        return (query.order_by(cls.date.desc(), cls.time.desc(), cls.created_at.desc(), cls.id)
                .limit(limit).offset(offset).all())

    @classmethod
    def get_stats(cls, user_id, start_date=None, end_date=None):
        count = func.count(cls.id)
        query = db.session.query(
            cls.type,
            count.label("count"),
            func.avg(cls.value).label("avg_value"),
            func.min(cls.value).label("min_value"),
            func.max(cls.value).label("max_value"),
        ).filter(cls.user_id == user_id)
        query = cls._date_range(query, start_date, end_date)
        return [{
            "type": row.type,
            "count": row.count,
            "avg_value": row.avg_value,
            "min_value": row.min_value,
            "max_value": row.max_value,
        } for row in query.group_by(cls.type).order_by(count.desc()).all()]


class WorkEntry(OwnedResource, db.Model):
    __tablename__ = "work_entries"

    LABEL = "work entry"
    FIELDS = ("type", "title", "description", "date", "time_start", "time_end", "duration_minutes",
              "project_name", "client", "billable", "hourly_rate", "tags", "metadata")
    REQUIRED = ("type", "title", "date")
    JSON_FIELDS = ("tags", "metadata")
    CHOICES = {"type": WORK_TYPES}

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = db.Column(db.String(20), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    date = db.Column(db.Date, nullable=False)
    time_start = db.Column(db.String(8))
    time_end = db.Column(db.String(8))
    duration_minutes = db.Column(db.Integer)
    project_name = db.Column(db.String(200))
    client = db.Column(db.String(200))
    billable = db.Column(db.Boolean, nullable=False, default=False)
    hourly_rate = db.Column(db.Float)
    tags = db.Column(db.Text)
    metadata_ = db.Column("metadata", db.Text)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow)

    __table_args__ = (
        db.CheckConstraint(
            "type IN ('meeting', 'project', 'task', 'break', 'learning', 'other')",
            name="ck_work_entries_type"),
        db.Index("idx_work_user_id", "user_id"),
        db.Index("idx_work_date", "date"),
        db.Index("idx_work_type", "type"),
    )

    @classmethod
    def find_by_user_id(cls, user_id, limit=50, offset=0, type=None, project=None, billable=None,
                        start_date=None, end_date=None):
        query = cls.query.filter(cls.user_id == user_id)
        if type:
            query = query.filter(cls.type == type)
        if project:
            query = query.filter(cls.project_name == project)
        if billable is not None:
            query = query.filter(cls.billable.is_(billable))
        query = cls._date_range(query, start_date, end_date)
        return (query.order_by(cls.date.desc(), cls.time_start.desc(), cls.created_at.desc(), cls.id)
                .limit(limit).offset(offset).all())

    @classmethod
    def get_stats(cls, user_id, start_date=None, end_date=None):
        minutes = func.coalesce(func.sum(cls.duration_minutes), 0)

        def scoped(*columns):
            return cls._date_range(db.session.query(*columns).filter(cls.user_id == user_id),
                                   start_date, end_date)

        total_entries, total_minutes = scoped(func.count(cls.id), minutes).one()
        billable_minutes, billable_amount = scoped(
            minutes,
            func.coalesce(func.sum(cls.duration_minutes * cls.hourly_rate / 60.0), 0),
        ).filter(cls.billable.is_(True)).one()
        by_type = scoped(cls.type, func.count(cls.id), minutes).group_by(cls.type).order_by(cls.type).all()
        by_project = (scoped(cls.project_name, func.count(cls.id), minutes)
                      .filter(cls.project_name.isnot(None))
                      .group_by(cls.project_name).order_by(cls.project_name).all())
        return {
            "total_entries": total_entries,
            "total_minutes": total_minutes,
            "billable_minutes": billable_minutes,
            "billable_amount": round(float(billable_amount), 2),
            "by_type": [{"type": t, "count": c, "total_duration": m} for t, c, m in by_type],
            "by_project": [{"project_name": p, "count": c, "total_duration": m} for p, c, m in by_project],
        }


class Goal(OwnedResource, db.Model):
    __tablename__ = "goals"

    LABEL = "goal"
    FIELDS = ("title", "description", "category", "target_value", "current_value", "unit",
              "target_date", "status", "priority")
    REQUIRED = ("title", "category", "status", "priority")
    CHOICES = {"status": GOAL_STATUSES, "priority": GOAL_PRIORITIES}

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    category = db.Column(db.String(100), nullable=False)
    target_value = db.Column(db.Float)
    current_value = db.Column(db.Float, default=0)
    unit = db.Column(db.String(30))
    target_date = db.Column(db.Date)
    status = db.Column(db.String(20), nullable=False, default="active")
    priority = db.Column(db.String(20), nullable=False, default="medium")
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow)

    __table_args__ = (
        db.CheckConstraint("status IN ('active', 'completed', 'paused', 'cancelled')", name="ck_goals_status"),
        db.CheckConstraint("priority IN ('low', 'medium', 'high')", name="ck_goals_priority"),
        db.Index("idx_goals_user_id", "user_id"),
        db.Index("idx_goals_category", "category"),
        db.Index("idx_goals_status", "status"),
    )

    @property
    def progress(self):
        if not self.target_value:
            return None
        return min(100.0, round((self.current_value or 0) / self.target_value * 100, 1))

    def record_progress(self, current_value):
        self.assign({"current_value": current_value}, ("current_value",))
        if self.status == "active" and self.target_value and self.current_value >= self.target_value:
            self.status = "completed"
        return self.save()

    @classmethod
    def find_by_user_id(cls, user_id, limit=50, offset=0, status=None, category=None):
        query = cls.query.filter(cls.user_id == user_id)
        if status:
            query = query.filter(cls.status == status)
        if category:
            query = query.filter(cls.category == category)
        return (query.order_by(cls.target_date.is_(None), cls.target_date.asc(), cls.created_at.desc(), cls.id)
                .limit(limit).offset(offset).all())

    @classmethod
    def get_stats(cls, user_id):
        stats = {status: 0 for status in GOAL_STATUSES}
        stats["total"] = 0
        for status, count in (db.session.query(cls.status, func.count(cls.id))
                              .filter(cls.user_id == user_id).group_by(cls.status)):
            stats[status] = count
            stats["total"] += count
        return stats

    def to_dict(self):
        result = super().to_dict()
        result["progress"] = self.progress
        return result


class Habit(OwnedResource, db.Model):
    __tablename__ = "habits"

    LABEL = "habit"
    FIELDS = ("name", "description", "frequency", "target_count", "category", "color", "icon", "is_active")
    REQUIRED = ("name", "frequency")
    CHOICES = {"frequency": HABIT_FREQUENCIES}

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)
    frequency = db.Column(db.String(20), nullable=False)
    target_count = db.Column(db.Integer, default=1)
    category = db.Column(db.String(100))
    color = db.Column(db.String(20))
    icon = db.Column(db.String(50))
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow)

    completions = db.relationship("HabitCompletion", backref="habit", lazy=True, cascade="all, delete-orphan")

    __table_args__ = (
        db.Index("idx_habits_user_id", "user_id"),
        db.Index("idx_habits_active", "is_active"),
    )

    @classmethod
    def create(cls, user_id, data, **extra):
        if isinstance(data.get("frequency"), str):
            data = dict(data, frequency=data["frequency"].lower())
        return super().create(user_id, data, **extra)

    def update(self, data):
        if isinstance(data.get("frequency"), str):
            data = dict(data, frequency=data["frequency"].lower())
        return super().update(data)

    @classmethod
    def find_by_user_id(cls, user_id, limit=50, offset=0, is_active=None, category=None):
        query = cls.query.filter(cls.user_id == user_id)
        if is_active is not None:
            query = query.filter(cls.is_active.is_(is_active))
        if category:
            query = query.filter(cls.category == category)
        return query.order_by(cls.name.asc(), cls.id).limit(limit).offset(offset).all()

    def log_completion(self, on_date=None, count=1, notes=None):
        on_date = on_date or today()
        completion = HabitCompletion.query.filter_by(habit_id=self.id, date=on_date).first()
        if completion:
            completion.count += count
            if notes:
                completion.notes = notes
        else:
            completion = HabitCompletion(id=generate_id(), habit_id=self.id, user_id=self.user_id,
                                         date=on_date, count=count, notes=notes)
            db.session.add(completion)
        db.session.commit()
        return completion

    def history(self, start_date=None, end_date=None):
        query = HabitCompletion.query.filter(HabitCompletion.habit_id == self.id)
        query = HabitCompletion._date_range(query, start_date, end_date)
        return query.order_by(HabitCompletion.date.desc()).all()

    def completion_dates(self):
        rows = (db.session.query(HabitCompletion.date)
                .filter(HabitCompletion.habit_id == self.id)
                .order_by(HabitCompletion.date.desc()).all())
        return [row.date for row in rows]


class HabitCompletion(OwnedResource, db.Model):
    __tablename__ = "habit_completions"

    LABEL = "habit completion"

    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    habit_id = db.Column(db.String(36), db.ForeignKey("habits.id", ondelete="CASCADE"), nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    date = db.Column(db.Date, nullable=False)
    count = db.Column(db.Integer, default=1)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=utcnow)

    __table_args__ = (
        db.UniqueConstraint("habit_id", "date", name="uq_habit_completions_habit_date"),
        db.Index("idx_habit_completions_habit_id", "habit_id"),
        db.Index("idx_habit_completions_date", "date"),
        db.Index("idx_habit_completions_user_id", "user_id"),
    )
