from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient


def _tick(client: TestClient, app: FastAPI) -> None:
    assert client.portal is not None
    client.portal.call(app.state.ticker.tick)


def test_init_contains_own_record_inside_world(client: TestClient, app: FastAPI) -> None:
    with client.websocket_connect("/ws") as ws:
        msg = ws.receive_json()

        assert msg["type"] == "init"
        data = msg["data"]
        pid = data["playerId"]
        assert data["settings"] == {"width": 2000, "height": 2000, "boundaryWidth": 50}

        me = data["players"][pid]
        assert 0 <= me["x"] <= 2000
        assert 0 <= me["y"] <= 2000
        assert me["radius"] == 25
        assert me["speed"] == 5
        assert (me["dx"], me["dy"]) == (0, 0)
        assert pid in app.state.world


def test_join_and_leave_are_announced_once(client: TestClient, app: FastAPI) -> None:
    with client.websocket_connect("/ws") as ws1:
        pid1 = ws1.receive_json()["data"]["playerId"]

        with client.websocket_connect("/ws") as ws2:
            init2 = ws2.receive_json()["data"]
            pid2 = init2["playerId"]
            assert pid2 != pid1
            assert set(init2["players"]) == {pid1, pid2}

            joined = ws1.receive_json()
            assert joined["type"] == "newPlayer"
            assert joined["data"]["id"] == pid2
            assert joined["data"]["player"] == init2["players"][pid2]

            # Close explicitly: leaving the block also cancels the server task.
            ws2.close()
            left = ws1.receive_json()
            assert left == {"type": "playerDisconnected", "data": pid2}
            assert pid2 not in app.state.world

        # The next message is the tick, not a second join/leave notice.
        _tick(client, app)
        update = ws1.receive_json()
        assert update["type"] == "update"
        assert set(update["data"]) == {pid1}


def test_two_connections_get_independent_records(client: TestClient) -> None:
    with client.websocket_connect("/ws") as ws1, client.websocket_connect("/ws") as ws2:
        a = ws1.receive_json()["data"]
        b = ws2.receive_json()["data"]
        ra = b["players"][a["playerId"]]
        rb = b["players"][b["playerId"]]

        assert a["playerId"] != b["playerId"]
        assert (ra["x"], ra["y"]) != (rb["x"], rb["y"])


def test_move_then_tick_moves_by_speed(client: TestClient, app: FastAPI) -> None:
    with client.websocket_connect("/ws") as ws:
        pid = ws.receive_json()["data"]["playerId"]
        rec = app.state.world.get(pid)
        rec.x, rec.y = 1000.0, 1000.0

        ws.send_json({"type": "move", "data": {"dx": 1, "dy": 0}})
        # Frames from one connection are handled in order; the nickname echo
        # proves the move has been applied.
        ws.send_json({"type": "setNickname", "data": "mover"})
        echo = ws.receive_json()
        assert echo["type"] == "playerUpdate"
        assert echo["data"]["player"]["dx"] == 1
        assert echo["data"]["player"]["nickname"] == "mover"

        _tick(client, app)
        update = ws.receive_json()

        assert update["type"] == "update"
        assert update["data"][pid]["x"] == 1005.0
        assert update["data"][pid]["y"] == 1000.0


def test_bad_frames_do_not_close_the_connection(client: TestClient, app: FastAPI) -> None:
    with client.websocket_connect("/ws") as ws:
        pid = ws.receive_json()["data"]["playerId"]

        ws.send_text("{{{")
        ws.send_json({"type": "move", "data": {"dx": "left"}})
        ws.send_json({"type": "fly", "data": {}})
        ws.send_json({"type": "move", "data": {"dx": 9, "dy": 0}})
        ws.send_json({"type": "setNickname", "data": "still here"})

        echo = ws.receive_json()
        assert echo["type"] == "playerUpdate"
        assert echo["data"]["id"] == pid
        assert echo["data"]["player"]["dx"] == 1.0



def test_binary_frames_are_dropped_without_disconnecting(client: TestClient, app: FastAPI) -> None:
    with client.websocket_connect("/ws") as ws1, client.websocket_connect("/ws") as ws2:
        pid1 = ws1.receive_json()["data"]["playerId"]
        ws2.receive_json()
        ws1.receive_json()  # newPlayer for ws2

        ws1.send_bytes(b'{"type":"move","data":{"dx":1,"dy":0}}')
        ws1.send_json({"type": "setNickname", "data": "bytes"})

        # ws2 sees the nickname change, not a disconnect.
        msg = ws2.receive_json()
        assert msg["type"] == "playerUpdate"
        assert msg["data"]["id"] == pid1
        assert msg["data"]["player"]["dx"] == 0
        assert pid1 in app.state.world
