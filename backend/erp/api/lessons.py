"""Lesson scheduling endpoints with teacher, assistant and room conflict checks."""

from datetime import date
from typing import List
from zoneinfo import ZoneInfo

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.erp.core.security import get_current_user
from backend.erp.core.settings import get_settings
from backend.erp.core.time import resolve_timezone, to_instant, to_local
from backend.erp.crud.crud_schedule import lesson_crud
from backend.erp.db.session import get_db
from backend.erp.models.employee import Employee
from backend.erp.models.facility import Facility
from backend.erp.models.lesson import Lesson
from backend.erp.models.school_class import SchoolClass
from backend.erp.models.user import User
from backend.erp.schemas.lesson import LessonCreate, LessonRead, LessonUpdate
from backend.erp.services.errors import InvalidInput
from backend.erp.services.scheduling import bookings_for_session, check_conflicts

router = APIRouter(prefix="/lessons", tags=["lessons"])

logger = structlog.get_logger(__name__)


def _get_owned_lesson(db: Session, lesson_id: int, owner_id: int) -> Lesson:
    lesson = lesson_crud.get(db, lesson_id=lesson_id, owner_id=owner_id)
    if not lesson:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lesson not found")
    return lesson


def _require_owned_ids(db: Session, model, ids: set, owner_id: int, label: str) -> None:
    if not ids:
        return
    found = {row.id for row in db.query(model.id).filter(model.id.in_(ids), model.owner_id == owner_id).all()}
    missing = sorted(ids - found)
    if missing:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown {label} id {missing[0]}")


def _serialize_lesson(lesson: Lesson) -> dict:
    tz = resolve_timezone(lesson.timezone)
    sessions = []
    for session in lesson.sessions:
        start_local = to_local(session.start_at, tz)
        end_local = to_local(session.end_at, tz)
        sessions.append(
            {
                "id": session.id,
                "subject_type": session.subject_type,
                "teacher_id": session.teacher_id,
                "assistant_id": session.assistant_id,
                "room_id": session.room_id,
                "start_at": start_local,
                "end_at": end_local,
                "local_start_time": start_local.time().replace(tzinfo=None),
                "local_end_time": end_local.time().replace(tzinfo=None),
                "duration_minutes": session.duration_minutes,
            }
        )
    return {
        "id": lesson.id,
        "owner_id": lesson.owner_id,
        "class_id": lesson.class_id,
        "name": lesson.name,
        "scheduled_date": lesson.scheduled_date,
        "timezone": lesson.timezone,
        "sessions": sessions,
        "created_at": lesson.created_at,
    }


def _plan_sessions(
    db: Session, payload: LessonCreate, owner_id: int, exclude_lesson_id: int | None = None
) -> tuple[ZoneInfo, List[dict]]:
    """
    Validate references, convert wall-clock times to instants and run the
    conflict check. Raises 400 on invalid input and 409 on a conflict; returns
    the zone and the session rows ready to be written otherwise.
    """
    school_class = (
        db.query(SchoolClass).filter(SchoolClass.id == payload.class_id, SchoolClass.owner_id == owner_id).first()
    )
    if not school_class:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Class not found")

    teacher_ids = {s.teacher_id for s in payload.sessions}
    assistant_ids = {s.assistant_id for s in payload.sessions if s.assistant_id is not None}
    room_ids = {s.room_id for s in payload.sessions if s.room_id is not None}
    _require_owned_ids(db, Employee, teacher_ids, owner_id, "teacher")
    _require_owned_ids(db, Employee, assistant_ids, owner_id, "assistant")
    _require_owned_ids(db, Facility, room_ids, owner_id, "room")

    tz = resolve_timezone(payload.timezone, default=get_settings().default_timezone)

    rows: List[dict] = []
    proposed = []
    for session_in in payload.sessions:
        try:
            start_at = to_instant(payload.scheduled_date, session_in.start_time, tz)
            end_at = to_instant(payload.scheduled_date, session_in.end_time, tz)
        except ValueError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
        rows.append(
            {
                "subject_type": session_in.subject_type,
                "teacher_id": session_in.teacher_id,
                "assistant_id": session_in.assistant_id,
                "room_id": session_in.room_id,
                "start_at": start_at,
                "end_at": end_at,
                "duration_minutes": max(int((end_at - start_at).total_seconds() // 60), 0),
            }
        )
        proposed.extend(
            bookings_for_session(
                day=payload.scheduled_date,
                start=start_at,
                end=end_at,
                teacher_id=session_in.teacher_id,
                assistant_id=session_in.assistant_id,
                room_id=session_in.room_id,
            )
        )

    existing = lesson_crud.existing_bookings(
        db,
        owner_id=owner_id,
        day=payload.scheduled_date,
        teacher_ids=teacher_ids,
        assistant_ids=assistant_ids,
        room_ids=room_ids,
        exclude_lesson_id=exclude_lesson_id,
    )
    result = check_conflicts(proposed, existing)
    if isinstance(result, InvalidInput):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.message)
    if result.has_conflict:
        logger.info(
            "schedule_conflict",
            owner_id=owner_id,
            scheduled_date=payload.scheduled_date.isoformat(),
            conflicts=len(result.conflicts),
        )
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": result.describe(tz), "conflicts": result.as_detail(tz)},
        )
    return tz, rows


@router.post("/check-conflicts")
async def check_lesson_conflicts(
    payload: LessonCreate,
    exclude_lesson_id: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    tz, rows = _plan_sessions(db, payload, current_user.id, exclude_lesson_id=exclude_lesson_id)
    return {"conflict": False, "timezone": tz.key, "sessions": len(rows)}


@router.post("/", response_model=LessonRead, status_code=status.HTTP_201_CREATED)
async def create_lesson(payload: LessonCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    tz, rows = _plan_sessions(db, payload, current_user.id)
    lesson = lesson_crud.create_with_sessions(
        db,
        owner_id=current_user.id,
        name=payload.name,
        class_id=payload.class_id,
        scheduled_date=payload.scheduled_date,
        timezone=tz.key,
        sessions=rows,
    )
    logger.info("lesson_created", lesson_id=lesson.id, owner_id=current_user.id, sessions=len(rows))
    return _serialize_lesson(lesson)


@router.get("/", response_model=List[LessonRead])
async def list_lessons(
    lesson_date: date | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    class_id: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if lesson_date is not None:
        start_date = end_date = lesson_date
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=400, detail="start_date must not be after end_date")
    lessons = lesson_crud.get_multi(
        db, owner_id=current_user.id, start_date=start_date, end_date=end_date, class_id=class_id
    )
    return [_serialize_lesson(lesson) for lesson in lessons]


@router.get("/{lesson_id}", response_model=LessonRead)
async def get_lesson(lesson_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _serialize_lesson(_get_owned_lesson(db, lesson_id, current_user.id))


@router.put("/{lesson_id}", response_model=LessonRead)
async def update_lesson(
    lesson_id: int,
    payload: LessonUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    lesson = _get_owned_lesson(db, lesson_id, current_user.id)
    tz, rows = _plan_sessions(db, payload, current_user.id, exclude_lesson_id=lesson.id)
    lesson = lesson_crud.replace(
        db,
        db_obj=lesson,
        name=payload.name,
        class_id=payload.class_id,
        scheduled_date=payload.scheduled_date,
        timezone=tz.key,
        sessions=rows,
    )
    return _serialize_lesson(lesson)


@router.delete("/{lesson_id}")
async def delete_lesson(lesson_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    lesson = _get_owned_lesson(db, lesson_id, current_user.id)
    lesson_crud.delete(db, db_obj=lesson)
    return {"status": "deleted", "id": lesson_id}
