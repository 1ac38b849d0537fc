"""Directory endpoints: employees, facilities, classes and students."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.erp.core.security import get_current_user
from backend.erp.db.session import get_db
from backend.erp.models.employee import Employee
from backend.erp.models.facility import Facility
from backend.erp.models.school_class import SchoolClass
from backend.erp.models.student import Student
from backend.erp.models.user import User
from backend.erp.schemas.directory import (
    EmployeeCreate,
    EmployeeRead,
    FacilityCreate,
    FacilityRead,
    SchoolClassCreate,
    SchoolClassRead,
    StudentCreate,
    StudentRead,
)

router = APIRouter(tags=["directory"])


def _create(db: Session, model, owner_id: int, payload):
    obj = model(owner_id=owner_id, **payload.model_dump())
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@router.post("/employees", response_model=EmployeeRead, status_code=status.HTTP_201_CREATED)
async def create_employee(
    payload: EmployeeCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    return _create(db, Employee, current_user.id, payload)


@router.get("/employees", response_model=List[EmployeeRead])
async def list_employees(
    position: str | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Employee).filter(Employee.owner_id == current_user.id)
    if position:
        query = query.filter(Employee.position.ilike(f"%{position}%"))
    return query.order_by(Employee.full_name.asc()).all()


@router.post("/facilities", response_model=FacilityRead, status_code=status.HTTP_201_CREATED)
async def create_facility(
    payload: FacilityCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    return _create(db, Facility, current_user.id, payload)


@router.get("/facilities", response_model=List[FacilityRead])
async def list_facilities(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return db.query(Facility).filter(Facility.owner_id == current_user.id).order_by(Facility.name.asc()).all()


@router.post("/classes", response_model=SchoolClassRead, status_code=status.HTTP_201_CREATED)
async def create_class(
    payload: SchoolClassCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    if payload.facility_id is not None:
        facility = (
            db.query(Facility)
            .filter(Facility.id == payload.facility_id, Facility.owner_id == current_user.id)
            .first()
        )
        if not facility:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Facility not found")
    return _create(db, SchoolClass, current_user.id, payload)


@router.get("/classes", response_model=List[SchoolClassRead])
async def list_classes(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return (
        db.query(SchoolClass)
        .filter(SchoolClass.owner_id == current_user.id)
        .order_by(SchoolClass.class_name.asc())
        .all()
    )


@router.post("/students", response_model=StudentRead, status_code=status.HTTP_201_CREATED)
async def create_student(
    payload: StudentCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    return _create(db, Student, current_user.id, payload)


@router.get("/students", response_model=List[StudentRead])
async def list_students(
    student_status: str | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Student).filter(Student.owner_id == current_user.id)
    if student_status:
        query = query.filter(Student.status == student_status)
    return query.order_by(Student.created_at.desc()).all()


@router.get("/students/{student_id}", response_model=StudentRead)
async def get_student(student_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    student = db.query(Student).filter(Student.id == student_id, Student.owner_id == current_user.id).first()
    if not student:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    return student
