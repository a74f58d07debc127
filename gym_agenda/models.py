"""
Persisted documents.

Each table mirrors one collection of the gym's document store. Document rows
that are read-modified-written inside transactions carry a ``version`` column
wired to SQLAlchemy's ``version_id_col``, which turns every UPDATE/DELETE into a
conditional write (optimistic concurrency).
"""

import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Integer, String

from .database import Base
from .shared.timeutils import utcnow

WEEKDAYS = ["Lunedì", "Martedì", "Mercoledì", "Giovedì", "Venerdì", "Sabato", "Domenica"]
PERIODS = ["morning", "afternoon"]

ROLE_OWNER = "owner"
ROLE_CLIENT = "client"
ROLES = [ROLE_OWNER, ROLE_CLIENT]

BANK_DOC_ID = "total"
SCHEDULE_STATE_KEY = "schedule_state"


def generate_id():
    return str(uuid.uuid4())


class DaySchedule(Base):
    __tablename__ = "schedule"

    day = Column(String(20), primary_key=True)  # one of WEEKDAYS
    morning = Column(JSON, nullable=False, default=list)  # list of slot dicts
    afternoon = Column(JSON, nullable=False, default=list)
    is_open = Column(Boolean, default=False, nullable=False)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class User(Base):
    __tablename__ = "users"

    name = Column(String(80), primary_key=True)  # name is the identity
    role = Column(String(20), nullable=False)  # owner, client
    is_blocked = Column(Boolean, default=False, nullable=False)
    subscription_expiry = Column(DateTime, nullable=True)  # naive UTC
    is_suspended = Column(Boolean, default=False, nullable=False)  # admin status edit
    previous_name = Column(String(80), nullable=True)  # set by rename
    created_at = Column(DateTime, default=utcnow, nullable=False)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class Bank(Base):
    __tablename__ = "bank"

    id = Column(String(20), primary_key=True, default=BANK_DOC_ID)
    amount = Column(Float, default=0.0, nullable=False)  # can go negative
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class LedgerEntry(Base):
    """Append-only audit trail; every bank movement writes exactly one entry"""

    __tablename__ = "ledger_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    amount = Column(Float, nullable=False)  # signed
    cause = Column(String(40), nullable=False, index=True)
    reference = Column(String(120), nullable=True)  # user name or expense id
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(200), nullable=False)
    cost = Column(Float, nullable=False)
    date = Column(DateTime, nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class Goal(Base):
    __tablename__ = "goals"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(200), nullable=False)
    cost = Column(Float, nullable=False)  # target amount
    status = Column(String(20), default="active", nullable=False)  # active, completed
    created_at = Column(DateTime, default=utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class PushSubscription(Base):
    """Push token registration, keyed by user name"""

    __tablename__ = "subscriptions"

    name = Column(String(80), primary_key=True)
    role = Column(String(20), nullable=False, index=True)
    token = Column(String(500), nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class AppMeta(Base):
    __tablename__ = "app_meta"

    key = Column(String(40), primary_key=True)
    last_reset_week_id = Column(String(20), nullable=True)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
