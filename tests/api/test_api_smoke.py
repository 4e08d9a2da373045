from __future__ import annotations

PASSWORDS = {"user@example.com": "user123", "guest@example.com": "guest123"}


def login(client, email, password=None):
    return client.post("/login", data={"email": email, "password": password or PASSWORDS[email]})


def test_api_requires_login(client):
    resp = client.get("/api/projects")

    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "message": "Authentication required"}


def test_pages_redirect_to_login(client):
    resp = client.get("/projects")

    assert resp.status_code == 302
    assert "/login" in resp.headers["Location"]


def test_login_page_renders(client):
    assert client.get("/login").status_code == 200


def test_failed_login(client):
    resp = login(client, "user@example.com", "wrong-password")

    assert resp.status_code == 401
    assert client.get("/api/auth-status").get_json()["data"] == {"authenticated": False}


def test_auth_status_after_login(login_as):
    client = login_as("manager")

    data = client.get("/api/auth-status").get_json()["data"]

    assert data["authenticated"] is True
    assert data["user"]["email"] == "manager@example.com"
    assert data["user"]["role"] == "manager"


def test_register_endpoint(client):
    resp = client.post("/api/register", json={"name": "Api User", "email": "api@example.com", "password": "secret1"})

    assert resp.status_code == 201
    assert resp.get_json()["data"]["role"] == "user"

    again = client.post("/api/register", json={"name": "Api User", "email": "api@example.com", "password": "secret1"})
    assert again.status_code == 409
    assert again.get_json()["success"] is False


def test_guest_lands_on_projects(client):
    resp = login(client, "guest@example.com")

    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/projects")


def test_manager_lands_on_dashboard(login_as):
    client = login_as("manager")

    assert client.get("/").headers["Location"].endswith("/dashboard")
    assert client.get("/dashboard").status_code == 200
    assert client.get("/projects").status_code == 200


def test_guest_cannot_see_dashboard(login_as):
    client = login_as("guest")

    assert client.get("/api/dashboard/stats").status_code == 403
    assert client.get("/dashboard").status_code == 403


def test_dashboard_stats(login_as):
    client = login_as("manager")

    data = client.get("/api/dashboard/stats").get_json()["data"]

    assert data["totalProjects"] == 1
    assert data["recentProjects"][0]["title"] == "Demo Project"
    assert len(data["projectGrowth"]) == 6


def test_create_and_list_projects(login_as):
    client = login_as("manager")

    created = client.post("/api/projects", json={"title": "API project", "estimatedTime": 4})
    assert created.status_code == 201
    project_id = created.get_json()["data"]["project_id"]

    listing = client.get("/api/projects?sortField=title&sortDirection=asc").get_json()
    assert [p["title"] for p in listing["data"]] == ["API project", "Demo Project"]
    assert listing["pagination"]["total"] == 2

    detail = client.get(f"/api/projects/{project_id}").get_json()["data"]
    assert [s["name"] for s in detail["statuses"]] == ["To Do", "In Progress", "Done"]
    assert detail["estimated_time"] == 4


def test_project_errors(login_as):
    client = login_as("manager")

    missing = client.get("/api/projects/9999")
    assert missing.status_code == 404
    assert missing.get_json() == {"success": False, "message": "Project not found"}

    invalid = client.post("/api/projects", json={"title": "ab"})
    assert invalid.status_code == 400


def test_user_cannot_create_project(login_as):
    client = login_as("user")

    assert client.post("/api/projects", json={"title": "Not mine"}).status_code == 403


def test_permission_matrix(login_as):
    client = login_as("guest")

    data = client.get("/api/permissions/matrix").get_json()["data"]

    assert data["matrix"]["guest"]["view_projects"] is True
    assert data["matrix"]["guest"]["project_creation"] is False
    assert {r["id"] for r in data["roles"]} == {"admin", "manager", "user", "guest"}


def test_check_in_and_out(login_as):
    client = login_as("user")

    assert client.get("/api/attendance/current").get_json()["data"] == {"checkedIn": False, "record": None}

    checked_in = client.post("/api/attendance/check-in", json={"notes": "start"})
    assert checked_in.status_code == 201
    assert client.get("/api/attendance/current").get_json()["data"]["checkedIn"] is True
    assert client.post("/api/attendance/check-in", json={}).status_code == 400

    checked_out = client.post("/api/attendance/check-out", json={"notes": "done"})
    assert checked_out.status_code == 200
    record = checked_out.get_json()["data"]
    assert record["check_out_time"] is not None
    assert record["notes"] == "start\ndone"


def test_export_formats(login_as):
    client = login_as("manager")

    csv_resp = client.get("/api/attendance/export?format=csv")
    assert csv_resp.status_code == 200
    assert csv_resp.mimetype == "text/csv"

    xlsx_resp = client.get("/api/attendance/export?format=xlsx")
    assert xlsx_resp.status_code == 200
    assert xlsx_resp.mimetype == "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

    assert client.get("/api/attendance/export?format=pdf").status_code == 400


def test_export_is_staff_only(login_as):
    client = login_as("user")

    assert client.get("/api/attendance/export").status_code == 403


def test_role_permissions_are_admin_only(login_as):
    client = login_as("admin")

    data = client.get("/api/roles/permissions").get_json()["data"]

    assert data["guest"] == ["view_projects"]
    assert "user_management" in data["admin"]
    assert "project_deletion" not in data["manager"]


def test_role_permissions_refused_for_managers(login_as):
    client = login_as("manager")

    assert client.get("/api/roles/permissions").status_code == 403


def test_user_roles_for_self_and_others(login_as, actors):
    client = login_as("user")

    mine = client.get("/api/users/roles").get_json()["data"]
    assert mine == {"userId": actors["user"].user_id, "roles": ["user"]}

    other = client.get(f"/api/users/roles?userId={actors['admin'].user_id}")
    assert other.status_code == 403
