from config import settings
from database import SessionLocal, engine, Base
from models.users import User, Role
from models.classes import SchoolClass
from models.students import Student
from models.teachers import Teacher
from models.payments import TuitionPayment, SalaryPayment
from models.expenses import Expense
from security import hash_password

# --- Create tables if missing ---
Base.metadata.create_all(bind=engine)


def seed_users(db, password=None):
    """Create (or reset) the built-in admin and administrator accounts."""
    password = password or settings.SEED_ADMIN_PASSWORD
    created = []
    for role in Role:
        user = db.query(User).filter_by(username=role.value).first()
        if user:
            user.password_hash = hash_password(password)
            user.role = role.value
            print(f"Reset password: {role.value}")
        else:
            db.add(User(username=role.value, password_hash=hash_password(password), role=role.value))
            created.append(role.value)
            print(f"Added user: {role.value}")
    db.commit()
    return created


def seed_classes(db, academic_year="1402-1403"):
    names = [f"Grade {n}" for n in range(1, 13)]
    for name in names:
        exists = db.query(SchoolClass).filter_by(name=name, academic_year=academic_year).first()
        if not exists:
            db.add(SchoolClass(name=name, academic_year=academic_year))
            print(f"Added class: {name} ({academic_year})")
    db.commit()


def seed_data():
    print("Seeding users and classes...")
    db = SessionLocal()
    try:
        seed_users(db)
        seed_classes(db)
    finally:
        db.close()
    print("Seed complete.")


if __name__ == "__main__":
    seed_data()
