def test_class_lifecycle(client, make_teacher, admin_headers, administrator_headers):
    teacher = make_teacher()
    created = client.post("/api/classes", json={
        "name": "Grade 7", "academic_year": "1402-1403", "teacher_id": teacher.id,
    }, headers=admin_headers).json()
    assert created["teacher"]["id"] == teacher.id
    assert created["student_count"] == 0

    renamed = client.put(f"/api/classes/{created['id']}", json={"name": "Grade 7A"}, headers=administrator_headers)
    assert renamed.json()["name"] == "Grade 7A"

    assert client.delete(f"/api/classes/{created['id']}", headers=administrator_headers).status_code == 200


def test_class_with_unknown_teacher(client, admin_headers):
    res = client.post("/api/classes", json={"name": "Grade 8", "academic_year": "1402-1403", "teacher_id": 99},
                      headers=admin_headers)
    assert res.status_code == 404


def test_class_student_counts(client, make_class, make_student, admin_headers):
    cls = make_class()
    make_student(class_id=cls.id)
    make_student(class_id=cls.id)
    counts = {c["id"]: c["student_count"] for c in client.get("/api/classes", headers=admin_headers).json()}
    assert counts[cls.id] == 2


def test_cannot_delete_class_with_students(client, make_class, make_student, administrator_headers):
    cls = make_class()
    make_student(class_id=cls.id)
    res = client.delete(f"/api/classes/{cls.id}", headers=administrator_headers)
    assert res.status_code == 400
    assert res.json()["detail"] == "Cannot delete class with students"


def test_admin_cannot_delete_class(client, make_class, admin_headers):
    cls = make_class()
    assert client.delete(f"/api/classes/{cls.id}", headers=admin_headers).status_code == 403
