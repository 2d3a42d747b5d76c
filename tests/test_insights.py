from scriptflow.core.errors import AIProviderError
from scriptflow.models import schemas


def test_new_script_has_no_insights(test_client, auth_headers, script):
    response = test_client.get(f"/api/v1/scripts/{script['id']}/insights", headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == []


def test_analyze_appends_findings_in_order(test_client, auth_headers, executor_headers, script, fake_ai):
    run = test_client.post(
        "/api/v1/test-runs",
        json={"script_id": script["id"], "environment": "staging"},
        headers=auth_headers,
    ).json()
    test_client.post(f"/api/v1/test-runs/{run['id']}/progress", json={"status": "running"}, headers=executor_headers)

    fake_ai.findings = [
        schemas.InsightCreate(type="flaky_step", severity="medium", summary="Login button click is flaky"),
        schemas.InsightCreate(type="healing", severity="low", summary="Prefer getByRole for #submit",
                              details={"selector": "#submit"}),
    ]
    response = test_client.post(f"/api/v1/scripts/{script['id']}/insights/analyze", headers=auth_headers)
    assert response.status_code == 201
    created = response.json()
    assert [i["type"] for i in created] == ["flaky_step", "healing"]
    assert created[1]["details"] == {"selector": "#submit", "ai_model": "fake-model-1"}

    listed = test_client.get(f"/api/v1/scripts/{script['id']}/insights", headers=auth_headers).json()
    assert [i["id"] for i in listed] == [i["id"] for i in created]
    assert listed[0]["severity"] == "medium"

    sent_runs = fake_ai.analyze_calls[0]["runs"]
    assert [r.id for r in sent_runs] == [run["id"]]
    assert fake_ai.analyze_calls[0]["content"] == "step1"


def test_analyze_with_gemini(test_client, auth_headers, script, fake_ai, fake_gemini):
    fake_gemini.findings = [schemas.InsightCreate(type="analysis", summary="Looks stable")]
    response = test_client.post(
        f"/api/v1/scripts/{script['id']}/insights/analyze",
        params={"provider": "gemini"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    assert response.json()[0]["details"]["ai_model"] == "fake-gemini"
    assert fake_ai.analyze_calls == []


def test_analyze_provider_failure_adds_nothing(test_client, auth_headers, script, fake_ai):
    fake_ai.error = AIProviderError("AI provider returned no JSON object", details={"provider": "openai"})

    response = test_client.post(f"/api/v1/scripts/{script['id']}/insights/analyze", headers=auth_headers)
    assert response.status_code == 500
    assert response.json()["error"]["code"] == "AI_PROVIDER_ERROR"
    assert test_client.get(f"/api/v1/scripts/{script['id']}/insights", headers=auth_headers).json() == []


def test_insights_of_other_users_script_are_hidden(test_client, other_headers, script):
    response = test_client.get(f"/api/v1/scripts/{script['id']}/insights", headers=other_headers)
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "SCRIPT_NOT_FOUND"


def test_listing_is_read_only(test_client, auth_headers, script, fake_ai):
    url = f"/api/v1/scripts/{script['id']}/insights"
    test_client.get(url, headers=auth_headers)
    test_client.get(url, headers=auth_headers)
    assert fake_ai.analyze_calls == []
    assert test_client.get(url, headers=auth_headers).json() == []
