"""Integration tests for the proxy function endpoint."""


def test_invoke_local_proxy(client):
    response = client.post("/functions/v1/date-helper-proxy", json={
        "action": "formatDate", "date": "2024-01-15T10:30:00Z", "format": "yyyy-MM-dd",
    })

    assert response.status_code == 200
    assert response.json()["formatted"] == "2024-01-15"


def test_proxy_status_passed_through(client):
    response = client.post("/functions/v1/trello-proxy", json={"action": "getBoard", "apiKey": "k"})

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "API Key and Token are required"}


def test_vendor_call(client, mock_request, make_response):
    mock_request.return_value = make_response(200, {"id": "b1", "name": "Roadmap"})

    response = client.post("/functions/v1/trello-proxy", json={
        "action": "getBoard", "apiKey": "k", "token": "t", "boardId": "b1",
    })

    assert response.status_code == 200
    assert response.json() == {"success": True, "data": {"id": "b1", "name": "Roadmap"}}
    assert mock_request.call_args.kwargs["url"] == "https://api.trello.com/1/boards/b1"


def test_unknown_function(client):
    response = client.post("/functions/v1/teleport-proxy", json={})

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Function not found: teleport-proxy"}


def test_invalid_json(client):
    response = client.post(
        "/functions/v1/trello-proxy", content="{nope", headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Request body must be valid JSON"


def test_non_object_body(client):
    response = client.post("/functions/v1/trello-proxy", json=[1, 2])

    assert response.status_code == 400
    assert response.json()["error"] == "Request body must be a JSON object"
