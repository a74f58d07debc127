"""Schedule repository - Database operations for day documents and schedule metadata"""

from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ...models import SCHEDULE_STATE_KEY, WEEKDAYS, AppMeta, DaySchedule


class ScheduleRepository:
    """Repository for schedule database operations"""

    @staticmethod
    def get_day(db: Session, day: str) -> Optional[DaySchedule]:
        return db.get(DaySchedule, day)

    @staticmethod
    def get_days(db: Session, days: Optional[Iterable[str]] = None) -> list[DaySchedule]:
        """Get day documents ordered Monday to Sunday (missing days are skipped)"""
        wanted = list(days) if days is not None else WEEKDAYS
        rows = db.query(DaySchedule).filter(DaySchedule.day.in_(wanted)).all()
        by_day = {row.day: row for row in rows}
        return [by_day[day] for day in WEEKDAYS if day in by_day]

    @staticmethod
    def create_day(db: Session, day: str) -> DaySchedule:
        row = DaySchedule(day=day, morning=[], afternoon=[], is_open=False)
        db.add(row)
        return row

    @staticmethod
    def get_schedule_state(db: Session) -> Optional[AppMeta]:
        return db.get(AppMeta, SCHEDULE_STATE_KEY)

    @staticmethod
    def create_schedule_state(db: Session, week_id: Optional[str] = None) -> AppMeta:
        meta = AppMeta(key=SCHEDULE_STATE_KEY, last_reset_week_id=week_id)
        db.add(meta)
        return meta
