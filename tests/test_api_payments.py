from models.payments import SalaryPayment


def test_record_tuition_payment(client, make_student, admin_headers):
    student = make_student()
    res = client.post("/api/payments", json={
        "student_id": student.id, "period": "1402/03", "amount": 2500, "method": "cash",
        "payment_date": "1402-03-10T09:00:00",
    }, headers=admin_headers)
    assert res.status_code == 200
    body = res.json()
    assert body["period"] == "1402/3"
    assert body["payment_type"] == "tuition"
    assert body["recorder"]["username"] == "admin"


def test_tuition_payment_rejects_zero_amount(client, make_student, admin_headers):
    student = make_student()
    res = client.post("/api/payments", json={
        "student_id": student.id, "period": "1402/3", "amount": 0, "method": "cash",
    }, headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["error"] == "invalid_amount"


def test_tuition_payment_rejects_bad_period(client, make_student, admin_headers):
    student = make_student()
    res = client.post("/api/payments", json={
        "student_id": student.id, "period": "1402-3", "amount": 10, "method": "cash",
    }, headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["error"] == "malformed_period"


def test_tuition_payment_unknown_method(client, make_student, admin_headers):
    student = make_student()
    res = client.post("/api/payments", json={
        "student_id": student.id, "period": "1402/3", "amount": 10, "method": "cheque",
    }, headers=admin_headers)
    assert res.status_code == 422


def test_duplicate_salary_payment(client, db, make_teacher, admin_headers):
    teacher = make_teacher()
    body = {"teacher_id": teacher.id, "period": "1402/5", "amount": 10000, "method": "bank"}
    first = client.post("/api/teacher-payments", json=body, headers=admin_headers)
    assert first.status_code == 200

    second = client.post("/api/teacher-payments", json=dict(body, amount=500), headers=admin_headers)
    assert second.status_code == 400
    assert second.json()["error"] == "duplicate_period"
    assert second.json()["existing_id"] == first.json()["id"]

    db.expire_all()
    assert db.query(SalaryPayment).filter_by(teacher_id=teacher.id).count() == 1


def test_salary_payment_unknown_teacher(client, admin_headers):
    res = client.post("/api/teacher-payments", json={
        "teacher_id": 77, "period": "1402/5", "amount": 10, "method": "cash",
    }, headers=admin_headers)
    assert res.status_code == 404
    assert res.json()["detail"] == "Teacher not found"


def test_corrections_are_administrator_only(client, make_student, admin_headers, administrator_headers):
    student = make_student()
    created = client.post("/api/payments", json={
        "student_id": student.id, "period": "1402/3", "amount": 100, "method": "cash",
    }, headers=admin_headers).json()

    denied = client.put(f"/api/payments/{created['id']}", json={"amount": 150}, headers=admin_headers)
    assert denied.status_code == 403

    fixed = client.put(f"/api/payments/{created['id']}", json={"amount": 150, "period": "1402/4"},
                       headers=administrator_headers)
    assert fixed.status_code == 200
    assert fixed.json()["amount"] == 150
    assert fixed.json()["period"] == "1402/4"

    assert client.delete(f"/api/payments/{created['id']}", headers=admin_headers).status_code == 403
    assert client.delete(f"/api/payments/{created['id']}", headers=administrator_headers).status_code == 200
    assert client.delete(f"/api/payments/{created['id']}", headers=administrator_headers).status_code == 404


def test_tuition_reports(client, make_student, admin_headers):
    s1 = make_student(base_fee=5000)
    make_student(base_fee=5000)
    client.post("/api/payments", json={
        "student_id": s1.id, "period": "1402/3", "amount": 2000, "method": "cash",
        "payment_date": "1402-03-20T10:00:00",
    }, headers=admin_headers)

    monthly = client.get("/api/payments/reports/monthly", params={"year": 1402, "month": 3},
                         headers=admin_headers).json()
    assert monthly["total_paid"] == 2000
    assert monthly["payment_count"] == 1

    annual = client.get("/api/payments/reports/annual", params={"year": 1402}, headers=admin_headers).json()
    assert annual["total_paid"] == 2000

    students = client.get("/api/payments/reports/students", params={"year": 1402, "month": 3},
                          headers=admin_headers).json()
    assert students["paid_count"] == 1
    assert students["unpaid_count"] == 1
    assert students["period"] == "1402/3"


def test_report_rejects_month_out_of_range(client, admin_headers):
    res = client.get("/api/payments/reports/monthly", params={"year": 1402, "month": 13}, headers=admin_headers)
    assert res.status_code == 422


def test_salary_reports(client, make_teacher, admin_headers):
    teacher = make_teacher(monthly_salary=10000)
    client.post("/api/teacher-payments", json={
        "teacher_id": teacher.id, "period": "1402/5", "amount": 4000, "method": "cash",
    }, headers=admin_headers)

    monthly = client.get("/api/teacher-payments/reports/monthly", params={"year": 1402, "month": 5},
                         headers=admin_headers).json()
    assert monthly["partial_count"] == 1
    assert monthly["teachers"][0]["remaining"] == 6000

    annual = client.get("/api/teacher-payments/reports/annual", params={"year": 1402},
                        headers=admin_headers).json()
    assert annual["total_annual_salary"] == 120000
    assert annual["total_paid_amount"] == 4000


def test_non_finite_amounts_are_rejected(client, make_student, make_teacher, admin_headers):
    student = make_student()
    teacher = make_teacher()
    for raw in ("Infinity", "NaN", "-Infinity"):
        res = client.post(
            "/api/payments",
            content='{"student_id": %d, "period": "1402/3", "amount": %s, "method": "cash"}' % (student.id, raw),
            headers=dict(admin_headers, **{"Content-Type": "application/json"}),
        )
        assert res.status_code == 400
        assert res.json()["error"] == "invalid_amount"

        res = client.post(
            "/api/teacher-payments",
            content='{"teacher_id": %d, "period": "1402/3", "amount": %s, "method": "cash"}' % (teacher.id, raw),
            headers=dict(admin_headers, **{"Content-Type": "application/json"}),
        )
        assert res.status_code == 400
        assert res.json()["error"] == "invalid_amount"

    report = client.get("/api/payments/reports/students", params={"year": 1402, "month": 3}, headers=admin_headers)
    assert report.status_code == 200
    assert report.json()["payment_count"] == 0


def test_report_year_out_of_range(client, admin_headers):
    res = client.get("/api/payments/reports/annual", params={"year": 9999}, headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["error"] == "malformed_period"

    res = client.get("/api/payments/reports/monthly", params={"year": 0, "month": 12}, headers=admin_headers)
    assert res.status_code == 400
