import datetime
import math

import pytest

from models.payments import PaymentMethod, SalaryPayment, TuitionPayment
from services import ledger
from services.errors import DuplicatePeriod, Forbidden, InvalidAmount, MalformedPeriodKey, NotFound, StorageFailure
from services.ledger import PaymentKind
from services.reconciliation import entity_status


# --- Tuition ---

def test_partial_tuition_payments_accumulate(db, make_student, admin):
    student = make_student(base_fee=5000)
    for amount in (1000, 1500, 500):
        ledger.record_tuition_payment(db, student.id, "1402/3", amount, PaymentMethod.CASH, admin.user_id)

    payments = ledger.list_payments_for_period(db, PaymentKind.TUITION, student.id, "1402/3")
    assert len(payments) == 3
    st = entity_status(db, PaymentKind.TUITION, student, year=1402, month=3)
    assert st.total_paid == 3000


def test_tuition_period_is_stored_unpadded(db, make_student, admin):
    student = make_student()
    payment = ledger.record_tuition_payment(db, student.id, "1402/03", 100, "bank", admin.user_id)
    assert payment.period == "1402/3"
    assert payment.method == "bank"
    assert payment.recorded_by == admin.user_id


def test_tuition_unknown_student(db, admin):
    with pytest.raises(NotFound):
        ledger.record_tuition_payment(db, 999, "1402/3", 100, "cash", admin.user_id)


@pytest.mark.parametrize("amount", [0, -50, math.inf, -math.inf, math.nan])
def test_tuition_rejects_non_positive_amount(db, make_student, admin, amount):
    student = make_student()
    with pytest.raises(InvalidAmount):
        ledger.record_tuition_payment(db, student.id, "1402/3", amount, "cash", admin.user_id)
    assert db.query(TuitionPayment).count() == 0


def test_tuition_rejects_malformed_period(db, make_student, admin):
    student = make_student()
    with pytest.raises(MalformedPeriodKey):
        ledger.record_tuition_payment(db, student.id, "March 1402", 100, "cash", admin.user_id)


def test_tuition_uniqueness_is_opt_in(db, make_student, admin):
    student = make_student()
    first = ledger.record_tuition_payment(
        db, student.id, "1402/3", 100, "cash", admin.user_id, enforce_unique_period=True
    )
    with pytest.raises(DuplicatePeriod) as exc:
        ledger.record_tuition_payment(
            db, student.id, "1402/3", 100, "cash", admin.user_id, enforce_unique_period=True
        )
    assert exc.value.existing_id == first.id


# --- Salary ---

def test_second_salary_payment_for_period_is_rejected(db, make_teacher, admin):
    teacher = make_teacher(monthly_salary=8000)
    ledger.record_salary_payment(db, teacher.id, "1402/5", 8000, "cash", admin.user_id)

    with pytest.raises(DuplicatePeriod):
        ledger.record_salary_payment(db, teacher.id, "1402/5", 100, "bank", admin.user_id)
    # Zero-padded spelling of the same month is the same period
    with pytest.raises(DuplicatePeriod):
        ledger.record_salary_payment(db, teacher.id, "1402/05", 100, "bank", admin.user_id)

    assert db.query(SalaryPayment).filter_by(teacher_id=teacher.id, period="1402/5").count() == 1


def test_salary_for_different_periods_is_allowed(db, make_teacher, admin):
    teacher = make_teacher()
    ledger.record_salary_payment(db, teacher.id, "1402/5", 100, "cash", admin.user_id)
    ledger.record_salary_payment(db, teacher.id, "1402/6", 100, "cash", admin.user_id)
    assert len(ledger.list_payments_for_entity(db, PaymentKind.SALARY, teacher.id)) == 2


def test_salary_unique_constraint_backs_the_check(db, make_teacher, admin):
    teacher = make_teacher()
    db.add(SalaryPayment(teacher_id=teacher.id, period="1402/5", amount=1, method="cash", recorded_by=admin.user_id))
    db.commit()
    db.add(SalaryPayment(teacher_id=teacher.id, period="1402/5", amount=1, method="cash", recorded_by=admin.user_id))
    with pytest.raises(DuplicatePeriod):
        ledger._commit(db, PaymentKind.SALARY, teacher.id, "1402/5")


def test_salary_unknown_teacher(db, admin):
    with pytest.raises(NotFound):
        ledger.record_salary_payment(db, 42, "1402/5", 100, "cash", admin.user_id)


# --- Listing ---

def test_list_for_entity_is_newest_date_first(db, make_student, admin):
    student = make_student()
    for day in (5, 20, 10):
        ledger.record_tuition_payment(
            db, student.id, "1402/3", 10, "cash", admin.user_id,
            payment_date=datetime.datetime(1402, 3, day),
        )
    dates = [p.date.day for p in ledger.list_payments_for_entity(db, PaymentKind.TUITION, student.id)]
    assert dates == [20, 10, 5]


def test_list_for_period_matches_exact_key(db, make_student, admin):
    student = make_student()
    ledger.record_tuition_payment(db, student.id, "1402/1", 10, "cash", admin.user_id)
    ledger.record_tuition_payment(db, student.id, "1402/11", 20, "cash", admin.user_id)

    jan = ledger.list_payments_for_period(db, PaymentKind.TUITION, student.id, "1402/1")
    assert [p.amount for p in jan] == [10]


# --- Corrections ---

def test_only_administrator_can_delete(db, make_student, admin, administrator):
    student = make_student()
    payment = ledger.record_tuition_payment(db, student.id, "1402/3", 10, "cash", admin.user_id)

    with pytest.raises(Forbidden):
        ledger.delete_payment(db, PaymentKind.TUITION, payment.id, admin)

    ledger.delete_payment(db, PaymentKind.TUITION, payment.id, administrator)
    assert db.query(TuitionPayment).count() == 0

    with pytest.raises(NotFound):
        ledger.delete_payment(db, PaymentKind.TUITION, payment.id, administrator)


def test_update_salary_period_cannot_collide(db, make_teacher, admin, administrator):
    teacher = make_teacher()
    ledger.record_salary_payment(db, teacher.id, "1402/5", 100, "cash", admin.user_id)
    june = ledger.record_salary_payment(db, teacher.id, "1402/6", 100, "cash", admin.user_id)

    with pytest.raises(DuplicatePeriod):
        ledger.update_payment(db, PaymentKind.SALARY, june.id, administrator, period="1402/5")

    updated = ledger.update_payment(db, PaymentKind.SALARY, june.id, administrator, amount=250, method="online")
    assert updated.amount == 250
    assert updated.method == "online"
    assert updated.period == "1402/6"


def test_update_requires_administrator(db, make_student, admin):
    student = make_student()
    payment = ledger.record_tuition_payment(db, student.id, "1402/3", 10, "cash", admin.user_id)
    with pytest.raises(Forbidden):
        ledger.update_payment(db, PaymentKind.TUITION, payment.id, admin, amount=20)


def test_salary_rejects_infinite_amount(db, make_teacher, admin):
    teacher = make_teacher()
    with pytest.raises(InvalidAmount):
        ledger.record_salary_payment(db, teacher.id, "1402/5", math.inf, "cash", admin.user_id)
    assert db.query(SalaryPayment).count() == 0


def test_update_rejects_non_finite_amount(db, make_student, admin, administrator):
    student = make_student()
    payment = ledger.record_tuition_payment(db, student.id, "1402/3", 10, "cash", admin.user_id)
    with pytest.raises(InvalidAmount):
        ledger.update_payment(db, PaymentKind.TUITION, payment.id, administrator, amount=math.nan)


def test_other_integrity_errors_are_storage_failures(db, make_student, admin):
    student = make_student()
    db.add(TuitionPayment(student_id=student.id, period="1402/3", amount=None, method="cash", recorded_by=admin.user_id))
    with pytest.raises(StorageFailure):
        ledger._commit(db, PaymentKind.TUITION, student.id, "1402/3")
    assert db.query(TuitionPayment).count() == 0


def test_salary_not_null_failure_is_not_a_duplicate(db, make_teacher, admin):
    teacher = make_teacher()
    db.add(SalaryPayment(teacher_id=teacher.id, period="1402/5", amount=None, method="cash", recorded_by=admin.user_id))
    with pytest.raises(StorageFailure):
        ledger._commit(db, PaymentKind.SALARY, teacher.id, "1402/5")


def test_update_tuition_period_clash_when_unique_enforced(db, make_student, admin, administrator):
    student = make_student()
    ledger.record_tuition_payment(db, student.id, "1402/3", 100, "cash", admin.user_id)
    april = ledger.record_tuition_payment(db, student.id, "1402/4", 100, "cash", admin.user_id)

    with pytest.raises(DuplicatePeriod):
        ledger.update_payment(
            db, PaymentKind.TUITION, april.id, administrator, period="1402/03", enforce_unique_period=True
        )
    db.refresh(april)
    assert april.period == "1402/4"

    moved = ledger.update_payment(
        db, PaymentKind.TUITION, april.id, administrator, period="1402/3", enforce_unique_period=False
    )
    assert moved.period == "1402/3"
