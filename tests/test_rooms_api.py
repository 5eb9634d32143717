def test_health(make_client):
    with make_client() as client:
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"event": "join_room", "data": "x"})
            for _ in range(3):
                ws.receive_json()

            response = client.get("/health")

            assert response.status_code == 200
            assert response.json() == {"status": "ok", "connections": 1, "rooms": 1}


def test_unknown_room(make_client):
    with make_client() as client:
        assert client.get("/rooms/nowhere").status_code == 404


def test_private_channel_is_not_a_room(make_client):
    with make_client() as client:
        with client.websocket_connect("/ws") as ws:
            sid = ws.receive_json()["data"]["id"]
            assert client.get(f"/rooms/{sid}").status_code == 404


def test_room_details_password(make_client):
    with make_client(password="hunter2") as client:
        with client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_json({"event": "join_room", "data": {"roomId": "x", "password": "hunter2"}})
            for _ in range(3):
                ws.receive_json()

            assert client.get("/rooms/x").status_code == 401
            assert client.get("/rooms/x", params={"password": "wrong"}).status_code == 401

            response = client.get("/rooms/x", params={"password": "hunter2"})
            assert response.status_code == 200
            assert response.json() == {
                "room_id": "x",
                "online_users_count": 1,
                "has_host": True,
                "has_password": True,
            }


def test_http_outside_allow_list_forbidden(make_client):
    with make_client(allowed_ips=["10.0.0.1"]) as client:
        response = client.get("/health")
        assert response.status_code == 403
        assert response.text == "Forbidden"

        allowed = client.get("/health", headers={"x-forwarded-for": "10.0.0.1"})
        assert allowed.status_code == 200
