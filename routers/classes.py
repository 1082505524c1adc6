from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func
from database import get_db
from models.classes import SchoolClass
from models.students import Student
from models.teachers import Teacher
from pydantic import BaseModel
from typing import Optional

from security import Principal, get_current_principal, require_administrator
from services.errors import EntityInUse, NotFound

router = APIRouter(prefix="/api/classes", tags=["Classes"])


# =======================
# 1. PYDANTIC SCHEMAS
# =======================
class ClassCreate(BaseModel):
    name: str
    academic_year: str
    teacher_id: Optional[int] = None


class ClassUpdate(BaseModel):
    name: Optional[str] = None
    academic_year: Optional[str] = None
    teacher_id: Optional[int] = None


def _class_out(cls: SchoolClass, student_count: int = 0) -> dict:
    return {
        "id": cls.id,
        "name": cls.name,
        "academic_year": cls.academic_year,
        "teacher_id": cls.teacher_id,
        "teacher": {
            "id": cls.teacher.id,
            "first_name": cls.teacher.first_name,
            "last_name": cls.teacher.last_name,
        } if cls.teacher else None,
        "student_count": student_count,
    }


def _check_teacher(db: Session, teacher_id: Optional[int]):
    if teacher_id is not None and not db.query(Teacher).filter(Teacher.id == teacher_id).first():
        raise NotFound("Teacher not found")


# =======================
# 2. CLASS APIs
# =======================
@router.get("")
def list_classes(db: Session = Depends(get_db), _: Principal = Depends(get_current_principal)):
    classes = db.query(SchoolClass).options(joinedload(SchoolClass.teacher)).all()

    # One grouped count instead of one query per class
    counts = dict(
        db.query(Student.class_id, func.count(Student.id)).group_by(Student.class_id).all()
    )
    return [_class_out(c, counts.get(c.id, 0)) for c in classes]


@router.post("")
def create_class(item: ClassCreate, db: Session = Depends(get_db), _: Principal = Depends(get_current_principal)):
    _check_teacher(db, item.teacher_id)
    new_class = SchoolClass(name=item.name, academic_year=item.academic_year, teacher_id=item.teacher_id)
    db.add(new_class)
    db.commit()
    db.refresh(new_class)
    return _class_out(new_class)


@router.put("/{class_id}")
def update_class(
    class_id: int,
    item: ClassUpdate,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_administrator),
):
    cls = db.query(SchoolClass).filter(SchoolClass.id == class_id).first()
    if not cls:
        raise NotFound("Class not found")

    _check_teacher(db, item.teacher_id)
    cls.name = item.name or cls.name
    cls.academic_year = item.academic_year or cls.academic_year
    cls.teacher_id = item.teacher_id or cls.teacher_id
    db.commit()
    db.refresh(cls)

    student_count = db.query(Student).filter(Student.class_id == cls.id).count()
    return _class_out(cls, student_count)


@router.delete("/{class_id}")
def delete_class(class_id: int, db: Session = Depends(get_db), _: Principal = Depends(require_administrator)):
    if db.query(Student).filter(Student.class_id == class_id).count() > 0:
        raise EntityInUse("Cannot delete class with students")

    cls = db.query(SchoolClass).filter(SchoolClass.id == class_id).first()
    if not cls:
        raise NotFound("Class not found")

    db.delete(cls)
    db.commit()
    return {"message": "Class removed"}
