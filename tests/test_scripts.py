def test_create_script_defaults(test_client, auth_headers):
    response = test_client.post(
        "/api/v1/scripts",
        json={"title": "Login flow", "content": "step1", "project_id": "proj-1"},
        headers=auth_headers,
    )
    assert response.status_code == 201

    script = response.json()
    assert script["user_id"] == "alice"
    assert script["language"] == "typescript"
    assert script["current_version"] == 0
    assert script["project_id"] == "proj-1"


def test_create_script_requires_title(test_client, auth_headers):
    response = test_client.post("/api/v1/scripts", json={"title": ""}, headers=auth_headers)
    assert response.status_code == 422


def test_list_scripts_is_per_user_and_filterable(test_client, auth_headers, other_headers):
    for title, project in [("A", "p1"), ("B", "p2"), ("C", "p1")]:
        test_client.post("/api/v1/scripts", json={"title": title, "project_id": project}, headers=auth_headers)
    test_client.post("/api/v1/scripts", json={"title": "Bob's"}, headers=other_headers)

    titles = [s["title"] for s in test_client.get("/api/v1/scripts", headers=auth_headers).json()]
    assert titles == ["C", "B", "A"]

    filtered = test_client.get("/api/v1/scripts", params={"project_id": "p1"}, headers=auth_headers).json()
    assert [s["title"] for s in filtered] == ["C", "A"]

    paged = test_client.get("/api/v1/scripts", params={"skip": 1, "limit": 1}, headers=auth_headers).json()
    assert [s["title"] for s in paged] == ["B"]


def test_get_other_users_script_is_not_found(test_client, other_headers, script):
    response = test_client.get(f"/api/v1/scripts/{script['id']}", headers=other_headers)
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "SCRIPT_NOT_FOUND"


def test_new_script_has_no_revisions(test_client, auth_headers, script):
    response = test_client.get(f"/api/v1/scripts/{script['id']}/revisions", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == []


def test_delete_script_removes_history(test_client, auth_headers, executor_headers, script):
    changeset = test_client.post(
        f"/api/v1/scripts/{script['id']}/enhance", json={"prompt": "Add waits"}, headers=auth_headers
    ).json()
    test_client.post(f"/api/v1/scripts/{script['id']}/changesets/{changeset['id']}/accept", headers=auth_headers)
    run = test_client.post(
        "/api/v1/test-runs", json={"script_id": script["id"], "environment": "qa"}, headers=auth_headers
    ).json()
    test_client.post(f"/api/v1/test-runs/{run['id']}/progress", json={"status": "running"}, headers=executor_headers)
    test_client.post(f"/api/v1/test-runs/{run['id']}/progress", json={"status": "failed"}, headers=executor_headers)

    response = test_client.delete(f"/api/v1/scripts/{script['id']}", headers=auth_headers)
    assert response.status_code == 204

    assert test_client.get(f"/api/v1/scripts/{script['id']}", headers=auth_headers).status_code == 404
    assert test_client.get(f"/api/v1/test-runs/{run['id']}", headers=auth_headers).status_code == 404
    assert test_client.get("/api/v1/test-runs", headers=auth_headers).json() == []


def test_other_user_cannot_delete(test_client, auth_headers, other_headers, script):
    assert test_client.delete(f"/api/v1/scripts/{script['id']}", headers=other_headers).status_code == 404
    assert test_client.get(f"/api/v1/scripts/{script['id']}", headers=auth_headers).status_code == 200
