"""CRUD operations for lessons and their teaching sessions."""

from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from backend.erp.core.time import ensure_utc
from backend.erp.models.lesson import Lesson
from backend.erp.models.teaching_session import TeachingSession
from backend.erp.services.scheduling import Booking, bookings_for_session


class CRUDLesson:
    def create_with_sessions(
        self,
        db: Session,
        *,
        owner_id: int,
        name: str,
        class_id: int,
        scheduled_date: date,
        timezone: str,
        sessions: List[dict],
    ) -> Lesson:
        lesson = Lesson(
            owner_id=owner_id,
            name=name,
            class_id=class_id,
            scheduled_date=scheduled_date,
            timezone=timezone,
        )
        lesson.sessions = [TeachingSession(**values) for values in sessions]
        db.add(lesson)
        db.commit()
        db.refresh(lesson)
        return lesson

    def get(self, db: Session, *, lesson_id: int, owner_id: int) -> Optional[Lesson]:
        return (
            db.query(Lesson)
            .options(selectinload(Lesson.sessions))
            .filter(Lesson.id == lesson_id, Lesson.owner_id == owner_id)
            .first()
        )

    def get_multi(
        self,
        db: Session,
        *,
        owner_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        class_id: Optional[int] = None,
    ) -> List[Lesson]:
        query = db.query(Lesson).options(selectinload(Lesson.sessions)).filter(Lesson.owner_id == owner_id)
        if start_date is not None:
            query = query.filter(Lesson.scheduled_date >= start_date)
        if end_date is not None:
            query = query.filter(Lesson.scheduled_date <= end_date)
        if class_id is not None:
            query = query.filter(Lesson.class_id == class_id)
        return query.order_by(Lesson.scheduled_date.asc(), Lesson.id.asc()).all()

    def replace(
        self,
        db: Session,
        *,
        db_obj: Lesson,
        name: str,
        class_id: int,
        scheduled_date: date,
        timezone: str,
        sessions: List[dict],
    ) -> Lesson:
        db_obj.name = name
        db_obj.class_id = class_id
        db_obj.scheduled_date = scheduled_date
        db_obj.timezone = timezone
        # delete-orphan cascade removes the previous sessions
        db_obj.sessions = [TeachingSession(**values) for values in sessions]
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def delete(self, db: Session, *, db_obj: Lesson) -> Lesson:
        db.delete(db_obj)
        db.commit()
        return db_obj

    def existing_bookings(
        self,
        db: Session,
        *,
        owner_id: int,
        day: date,
        teacher_ids: Iterable[int] = (),
        assistant_ids: Iterable[int] = (),
        room_ids: Iterable[int] = (),
        exclude_lesson_id: Optional[int] = None,
    ) -> List[Booking]:
        """Bookings already stored for ``day`` that touch any of the given resources."""
        teacher_ids = set(teacher_ids)
        assistant_ids = set(assistant_ids)
        room_ids = set(room_ids)
        resource_filters = []
        if teacher_ids:
            resource_filters.append(TeachingSession.teacher_id.in_(teacher_ids))
        if assistant_ids:
            resource_filters.append(TeachingSession.assistant_id.in_(assistant_ids))
        if room_ids:
            resource_filters.append(TeachingSession.room_id.in_(room_ids))
        if not resource_filters:
            return []

        query = (
            db.query(TeachingSession)
            .join(Lesson, TeachingSession.lesson_id == Lesson.id)
            .filter(Lesson.owner_id == owner_id, Lesson.scheduled_date == day, or_(*resource_filters))
        )
        if exclude_lesson_id is not None:
            query = query.filter(Lesson.id != exclude_lesson_id)

        bookings: List[Booking] = []
        for row in query.all():
            bookings.extend(
                bookings_for_session(
                    day=day,
                    start=ensure_utc(row.start_at),
                    end=ensure_utc(row.end_at),
                    teacher_id=row.teacher_id,
                    assistant_id=row.assistant_id,
                    room_id=row.room_id,
                    session_id=row.id,
                )
            )
        return bookings


lesson_crud = CRUDLesson()
