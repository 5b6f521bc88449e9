from core.config import MAX_BATCH_ITEMS


def test_validate_endpoint(sync_client):
    response = sync_client.post(
        "/validation/validate",
        json={"shape": "number", "correct_answer": "42", "user_answer": "42.0"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["metadata"]["type"] == "correct_answer"
    assert body["metadata"]["shape"] == "number"


def test_validate_endpoint_with_config(sync_client):
    response = sync_client.post(
        "/validation/validate",
        json={
            "shape": "number",
            "correct_answer": "10",
            "user_answer": "10.02",
            "config": {"tolerance": 0.01},
        },
    )
    body = response.json()
    assert body["ok"] is False
    assert body["metadata"]["type"] == "tolerance_exceeded"


def test_validate_endpoint_empty_answer(sync_client):
    response = sync_client.post(
        "/validation/validate",
        json={"shape": "set", "correct_answer": "{1}", "user_answer": ""},
    )
    assert response.status_code == 200
    assert response.json()["ok"] is None


def test_validate_endpoint_rejects_unknown_shape(sync_client):
    response = sync_client.post(
        "/validation/validate",
        json={"shape": "matrix", "correct_answer": "1", "user_answer": "1"},
    )
    assert response.status_code == 422


def test_validate_endpoint_rejects_negative_tolerance(sync_client):
    response = sync_client.post(
        "/validation/validate",
        json={"shape": "number", "correct_answer": "1", "user_answer": "1", "config": {"tolerance": -1}},
    )
    assert response.status_code == 422


def test_format_endpoint(sync_client):
    response = sync_client.post("/validation/format", json={"shape": "set", "input": "{1,2,3}"})
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["metadata"]["type"] == "valid_set"


def test_format_endpoint_reports_format_error(sync_client):
    response = sync_client.post("/validation/format", json={"shape": "equation", "input": "x + 1"})
    assert response.json()["metadata"]["type"] == "missing_equals"


def test_batch_endpoint(sync_client):
    response = sync_client.post(
        "/validation/batch",
        json={
            "exercise_id": "ex-1",
            "items": [
                {"shape": "number", "correct_answer": "42", "user_answer": "42"},
                {"shape": "point", "correct_answer": "(1, 2)", "user_answer": "(1, 2, 3)"},
            ],
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["total_score"] == 1
    assert body["max_score"] == 2
    assert body["all_correct"] is False
    assert [r["index"] for r in body["results"]] == [0, 1]
    assert body["results"][1]["metadata"]["type"] == "dimension_mismatch"


def test_batch_endpoint_rejects_oversized_batch(sync_client):
    item = {"shape": "number", "correct_answer": "1", "user_answer": "1"}
    response = sync_client.post(
        "/validation/batch",
        json={"exercise_id": "ex-1", "items": [item] * (MAX_BATCH_ITEMS + 1)},
    )
    assert response.status_code == 422
    body = response.json()
    assert body["field"] == "items"
    assert body["limit"] == MAX_BATCH_ITEMS


def test_batch_endpoint_rejects_blank_exercise_id(sync_client):
    response = sync_client.post("/validation/batch", json={"exercise_id": "  ", "items": []})
    assert response.status_code == 422


def test_quick_endpoint(sync_client):
    assert sync_client.post("/validation/quick", json={"shape": "vector", "input": "[1, 2]"}).json() == {"valid": True}
    assert sync_client.post("/validation/quick", json={"shape": "vector", "input": "[1, "}).json() == {"valid": False}


def test_analyze_endpoint(sync_client):
    history = [
        {"ok": False, "title": "", "message": "", "metadata": {"type": "partial_match", "original_input": "{1/2}"}},
    ]
    response = sync_client.post("/validation/analyze", json=history)
    assert response.status_code == 200
    body = response.json()
    assert body["error_types"] == [{"type": "partial_match", "count": 1}]
    assert {p["pattern"] for p in body["common_patterns"]} == {"set_notation", "fractions"}


def test_shapes_endpoint(sync_client):
    shapes = sync_client.get("/validation/shapes").json()["shapes"]
    assert {"number", "set", "vector", "point", "formula", "equation", "antiderivative"} <= set(shapes)


def test_stats_endpoint(sync_client):
    response = sync_client.get("/validation/stats")
    assert response.status_code == 200
    assert set(response.json()) == {"total_validations", "average_validation_time_ms", "success_rate", "error_rate"}


def test_prometheus_endpoint(sync_client):
    sync_client.post(
        "/validation/validate",
        json={"shape": "number", "correct_answer": "1", "user_answer": "1"},
    )
    response = sync_client.get("/metrics")
    assert response.status_code == 200
    assert "answer_validation_requests_total" in response.text
    assert "answer_validation_results_total" in response.text


def test_validate_endpoint_accepts_spanish_shape_names(sync_client):
    response = sync_client.post(
        "/validation/validate",
        json={"shape": "Conjunto", "correct_answer": "{1, 2}", "user_answer": "{2, 1}"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["metadata"]["shape"] == "set"


def test_quick_endpoint_accepts_spanish_shape_names(sync_client):
    assert sync_client.post("/validation/quick", json={"shape": "punto", "input": "(1, 2)"}).json() == {"valid": True}
