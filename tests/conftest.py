import os
import datetime

# Must be set before config is imported anywhere
os.environ["APP_ENV"] = "testing"
os.environ.pop("DATABASE_URL", None)

import pytest
from fastapi.testclient import TestClient

from main import app
from database import Base, SessionLocal, engine
from models.users import User, Role
from models.classes import SchoolClass
from models.students import Student
from models.teachers import Teacher
from security import Principal, create_access_token, hash_password


@pytest.fixture(autouse=True)
def _fresh_tables():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


# --- Users / principals ---

def _make_user(db, role: Role) -> User:
    user = User(username=role.value, password_hash=hash_password("secret123"), role=role.value)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_user(db):
    return _make_user(db, Role.ADMIN)


@pytest.fixture
def administrator_user(db):
    return _make_user(db, Role.ADMINISTRATOR)


@pytest.fixture
def admin(admin_user):
    return Principal(user_id=admin_user.id, username=admin_user.username, role=Role.ADMIN)


@pytest.fixture
def administrator(administrator_user):
    return Principal(user_id=administrator_user.id, username=administrator_user.username, role=Role.ADMINISTRATOR)


@pytest.fixture
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {create_access_token(admin_user)}"}


@pytest.fixture
def administrator_headers(administrator_user):
    return {"x-auth-token": create_access_token(administrator_user)}


# --- Domain factories ---

@pytest.fixture
def make_class(db):
    def _make(name="Grade 1", academic_year="1402-1403"):
        cls = SchoolClass(name=name, academic_year=academic_year)
        db.add(cls)
        db.commit()
        db.refresh(cls)
        return cls
    return _make


@pytest.fixture
def make_student(db, make_class):
    counter = {"n": 0}

    def _make(base_fee=0.0, class_id=None, **kwargs):
        counter["n"] += 1
        if class_id is None:
            class_id = make_class(name=f"Class {counter['n']}").id
        student = Student(
            student_code=kwargs.pop("student_code", f"S{counter['n']:03d}"),
            first_name=kwargs.pop("first_name", "Ali"),
            last_name=kwargs.pop("last_name", f"Student{counter['n']}"),
            father_name="Reza",
            grandfather_name="Hassan",
            birth_date=datetime.date(2012, 3, 1),
            gender="male",
            parent_phone="0700000000",
            class_id=class_id,
            base_fee=base_fee,
            **kwargs,
        )
        db.add(student)
        db.commit()
        db.refresh(student)
        return student
    return _make


@pytest.fixture
def make_teacher(db):
    counter = {"n": 0}

    def _make(monthly_salary=10000.0, **kwargs):
        counter["n"] += 1
        teacher = Teacher(
            first_name=kwargs.pop("first_name", "Maryam"),
            last_name=kwargs.pop("last_name", f"Teacher{counter['n']}"),
            father_name="Ahmad",
            birth_date=datetime.date(1985, 6, 1),
            specialization="Mathematics",
            degree="Bachelor",
            experience=5,
            monthly_salary=monthly_salary,
            phone="0711111111",
            **kwargs,
        )
        db.add(teacher)
        db.commit()
        db.refresh(teacher)
        return teacher
    return _make
