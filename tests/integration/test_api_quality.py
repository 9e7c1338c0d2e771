def test_error_response_has_unified_shape(client):
    response = client.get("/users/me")
    assert response.status_code == 401
    body = response.json()
    assert "error" in body
    assert "code" in body["error"]
    assert "message" in body["error"]
    assert "detail" in body
    assert "request_id" in body


def test_unknown_route_uses_unified_shape(client):
    response = client.get("/no-such-route")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "http_404"


def test_health_endpoint_returns_ok_and_request_id(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert "x-request-id" in response.headers


def test_bookings_cursor_pagination(client, make_user):
    provider_id, _ = make_user("page_provider", role="PHOTOGRAPHER")
    _, client_headers = make_user("page_client")

    created_ids = []
    for hour in (9, 11, 13):
        response = client.post(
            "/bookings",
            headers=client_headers,
            json={"provider_id": provider_id, "date": f"2026-03-01T{hour:02d}:00:00Z"},
        )
        assert response.status_code == 201
        created_ids.append(response.json()["id"])

    first_page = client.get("/bookings/my?limit=2", headers=client_headers)
    assert first_page.status_code == 200
    first = first_page.json()
    assert [b["id"] for b in first["bookings"]] == [created_ids[2], created_ids[1]]
    assert first["next_cursor"] == created_ids[1]

    second_page = client.get(f"/bookings/my?limit=2&cursor={first['next_cursor']}", headers=client_headers)
    second = second_page.json()
    assert [b["id"] for b in second["bookings"]] == [created_ids[0]]
    assert second["next_cursor"] is None


def test_invalid_cursor_returns_400(client, make_user):
    _, headers = make_user("cursor_client")

    for cursor in ("abc", "NaN", "Infinity", "2.5", "-1", "1e400", "1e300", "1_000"):
        response = client.get(f"/bookings/my?cursor={cursor}", headers=headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid cursor"
