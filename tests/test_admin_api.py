import pytest

from conftest import sign_up


def _create_category(client, headers, name, rank=1):
    r = client.post("/admin/categories", headers=headers, json={"name": name, "rank": rank})
    assert r.status_code == 201, r.text
    return r.json()["data"]["category"]


def _create_course(client, headers, category_id, name, **extra):
    r = client.post("/admin/courses", headers=headers, json={"categoryId": category_id, "name": name, **extra})
    assert r.status_code == 201, r.text
    return r.json()["data"]["course"]


def test_admin_routes_require_token(client):
    for path in ("/admin/categories", "/admin/courses", "/admin/users", "/admin/settings", "/admin/charts/user"):
        r = client.get(path)
        assert r.status_code == 401, path
        assert r.json()["message"] == "Verification failed"


def test_category_pagination_normalizes_page_params(client, admin_headers):
    for i in range(7):
        _create_category(client, admin_headers, f"Category {i}", rank=i + 1)

    r = client.get("/admin/categories", headers=admin_headers, params={"currentPage": 0, "pageSize": -5})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["pagination"] == {"total": 7, "currentPage": 1, "pageSize": 5}
    assert [c["name"] for c in data["categories"]] == [f"Category {i}" for i in range(5)]

    r = client.get("/admin/categories", headers=admin_headers, params={"currentPage": 2, "pageSize": 5})
    assert [c["name"] for c in r.json()["data"]["categories"]] == ["Category 5", "Category 6"]


def test_category_crud_and_validation(client, admin_headers):
    category = _create_category(client, admin_headers, "Backend")

    r = client.post("/admin/categories", headers=admin_headers, json={"name": "Backend", "rank": 0})
    assert r.status_code == 400
    assert r.json()["errors"] == ["Name exists. Consider another name.", "Rank must be a positive integer."]

    r = client.put(f"/admin/categories/{category['id']}", headers=admin_headers, json={"name": "Back end"})
    assert r.status_code == 200
    assert r.json()["data"]["category"]["name"] == "Back end"
    assert r.json()["data"]["category"]["rank"] == 1

    # Renaming to its own name is not a uniqueness conflict.
    r = client.put(f"/admin/categories/{category['id']}", headers=admin_headers, json={"name": "Back end"})
    assert r.status_code == 200

    r = client.get("/admin/categories", headers=admin_headers, params={"name": "end"})
    assert r.json()["data"]["pagination"]["total"] == 1

    r = client.delete(f"/admin/categories/{category['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json() == {"status": True, "message": "Delete successful", "data": {}}

    r = client.get(f"/admin/categories/{category['id']}", headers=admin_headers)
    assert r.status_code == 404


def test_category_with_courses_cannot_be_deleted(client, admin_headers):
    category = _create_category(client, admin_headers, "Backend")
    _create_course(client, admin_headers, category["id"], "Python 101")

    r = client.delete(f"/admin/categories/{category['id']}", headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["errors"] == ["Delete failed, this category has courses."]


def test_course_filters_are_and_composed(client, admin_headers):
    backend = _create_category(client, admin_headers, "Backend")
    frontend = _create_category(client, admin_headers, "Frontend")
    _create_course(client, admin_headers, backend["id"], "Python 101", recommended=True)
    _create_course(client, admin_headers, backend["id"], "Python Web", recommended=False)
    _create_course(client, admin_headers, frontend["id"], "Python for UI", recommended=True)

    r = client.get(
        "/admin/courses",
        headers=admin_headers,
        params={"categoryId": backend["id"], "name": "Python", "recommended": "true"},
    )
    assert r.status_code == 200
    courses = r.json()["data"]["courses"]
    assert [c["name"] for c in courses] == ["Python 101"]
    assert courses[0]["category"]["name"] == "Backend"

    r = client.get("/admin/courses", headers=admin_headers, params={"recommended": "false"})
    assert [c["name"] for c in r.json()["data"]["courses"]] == ["Python Web"]

    r = client.get("/admin/courses", headers=admin_headers, params={"categoryId": "abc"})
    assert r.status_code == 400
    assert r.json()["message"] == "Wrong Request Parameters"


def test_course_owner_and_validation(client, admin_headers):
    category = _create_category(client, admin_headers, "Backend")
    course = _create_course(client, admin_headers, category["id"], "Python 101")
    assert course["userId"] == 1
    assert course["likesCount"] == 0
    assert course["recommended"] is False

    r = client.post(
        "/admin/courses",
        headers=admin_headers,
        json={"categoryId": 999, "name": "X", "image": "ftp:/nowhere"},
    )
    assert r.status_code == 400
    assert r.json()["errors"] == [
        "Category with ID:999 not exists.",
        "Length of name must be between 2 ~ 45 characters.",
        "Image URL is incorrect.",
    ]

    r = client.put(f"/admin/courses/{course['id']}", headers=admin_headers, json={"introductory": True})
    assert r.status_code == 200
    assert r.json()["data"]["course"]["introductory"] is True
    assert r.json()["data"]["course"]["name"] == "Python 101"


def test_chapters_adjust_course_counter_and_guard_course_delete(client, admin_headers):
    category = _create_category(client, admin_headers, "Backend")
    course = _create_course(client, admin_headers, category["id"], "Python 101")

    r = client.get("/admin/chapters", headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["errors"] == ["Failed to get chapters, courseId is required"]

    ids = []
    for title, rank in (("Second", 2), ("First", 1), ("Also first", 1)):
        r = client.post(
            "/admin/chapters",
            headers=admin_headers,
            json={"courseId": course["id"], "title": title, "rank": rank},
        )
        assert r.status_code == 201, r.text
        ids.append(r.json()["data"]["chapter"]["id"])

    r = client.get("/admin/chapters", headers=admin_headers, params={"courseId": course["id"]})
    data = r.json()["data"]
    assert [c["title"] for c in data["chapters"]] == ["First", "Also first", "Second"]
    assert data["pagination"]["total"] == 3

    r = client.get("/admin/chapters", headers=admin_headers, params={"courseId": course["id"], "title": "first"})
    assert [c["title"] for c in r.json()["data"]["chapters"]] == ["Also first"]

    r = client.get(f"/admin/courses/{course['id']}", headers=admin_headers)
    assert r.json()["data"]["course"]["chaptersCount"] == 3

    r = client.delete(f"/admin/courses/{course['id']}", headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["errors"] == ["Delete failed, the course has associated chapters."]

    for chapter_id in ids:
        assert client.delete(f"/admin/chapters/{chapter_id}", headers=admin_headers).status_code == 200

    r = client.get(f"/admin/courses/{course['id']}", headers=admin_headers)
    assert r.json()["data"]["course"]["chaptersCount"] == 0

    r = client.delete(f"/admin/courses/{course['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert client.get(f"/courses/{course['id']}").status_code == 404


def test_chapter_validation(client, admin_headers):
    r = client.post(
        "/admin/chapters",
        headers=admin_headers,
        json={"courseId": 42, "title": "Intro", "video": "nope", "rank": 1},
    )
    assert r.status_code == 400
    assert r.json()["errors"] == ["Course with ID:42 is not found.", "Video URL is incorrect."]

    r = client.post("/admin/chapters", headers=admin_headers, json={"courseId": 42, "title": "Intro", "rank": 1.5})
    assert r.status_code == 400
    assert r.json()["message"] == "Validation error"


def test_articles_crud(client, admin_headers):
    r = client.post("/admin/articles", headers=admin_headers, json={"title": "Release notes", "content": "v1"})
    assert r.status_code == 201
    article = r.json()["data"]["article"]

    r = client.put(f"/admin/articles/{article['id']}", headers=admin_headers, json={"content": "v2"})
    assert r.json()["data"]["article"]["content"] == "v2"
    assert r.json()["data"]["article"]["title"] == "Release notes"

    r = client.get("/admin/articles", headers=admin_headers, params={"title": "notes"})
    assert r.json()["data"]["pagination"]["total"] == 1

    r = client.post("/admin/articles", headers=admin_headers, json={"content": "no title"})
    assert r.status_code == 400
    assert r.json()["errors"] == ["Title is required."]

    assert client.delete(f"/admin/articles/{article['id']}", headers=admin_headers).status_code == 200
    r = client.get(f"/admin/articles/{article['id']}", headers=admin_headers)
    assert r.status_code == 404
    assert r.json()["errors"] == [f"ID: {article['id']} not found"]


def test_users_management(client, admin_headers):
    sign_up(client, "alice")
    sign_up(client, "bob")

    r = client.get("/admin/users", headers=admin_headers, params={"role": 0})
    data = r.json()["data"]
    assert [u["username"] for u in data["users"]] == ["bob", "alice"]
    assert all("passwordHash" not in u for u in data["users"])

    r = client.get("/admin/users", headers=admin_headers, params={"role": 0, "nickname": "Ali"})
    assert [u["username"] for u in r.json()["data"]["users"]] == ["alice"]

    r = client.get("/admin/users", headers=admin_headers, params={"email": "bob@example.com"})
    assert [u["username"] for u in r.json()["data"]["users"]] == ["bob"]

    r = client.post(
        "/admin/users",
        headers=admin_headers,
        json={"email": "carol@example.com", "username": "carol", "nickname": "Carol", "password": "abcdef", "role": 100},
    )
    assert r.status_code == 201
    carol = r.json()["data"]["user"]
    assert carol["role"] == 100

    r = client.put(f"/admin/users/{carol['id']}", headers=admin_headers, json={"role": 5})
    assert r.status_code == 400
    assert r.json()["errors"] == ["The value of role must be 0(normal user) or 100(administrator)."]

    r = client.put(f"/admin/users/{carol['id']}", headers=admin_headers, json={"company": "Acme"})
    assert r.json()["data"]["user"]["company"] == "Acme"

    r = client.delete(f"/admin/users/{carol['id']}", headers=admin_headers)
    assert r.status_code == 405


def test_settings(client, admin_headers):
    r = client.get("/admin/settings", headers=admin_headers)
    assert r.json()["data"]["setting"]["copyright"] == "(c) Test"

    r = client.put("/admin/settings", headers=admin_headers, json={"name": "Renamed"})
    assert r.status_code == 200
    assert r.json()["data"]["setting"]["name"] == "Renamed"
    assert client.get("/settings").json()["data"]["setting"]["name"] == "Renamed"


def test_charts(client, admin_headers):
    sign_up(client, "alice")

    r = client.get("/admin/charts/user", headers=admin_headers)
    assert r.status_code == 200
    data = r.json()["data"]["data"]
    assert len(data["months"]) == 1
    assert data["values"] == [2]

    r = client.get("/admin/charts/sex", headers=admin_headers)
    counts = {d["name"]: d["value"] for d in r.json()["data"]["data"]}
    assert counts == {"Male": 0, "Female": 0, "Unspecified": 2}


@pytest.mark.parametrize("path", ["/admin/categories/abc", "/admin/courses/1.5"])
def test_non_integer_ids_are_validation_errors(client, admin_headers, path):
    r = client.get(path, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Validation error"
