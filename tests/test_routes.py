"""API tests through FastAPI's TestClient, with a hand-driven scheduler."""

import logging

import pytest
from fastapi.testclient import TestClient

from galmode.app import create_app
from galmode.models import CharacterInfo
from galmode.source import SourceError, StaticContentSource
from tests.helpers import FakeScheduler, message

MIRA = CharacterInfo(name="Mira", avatar="mira.png")


class RejectingSource(StaticContentSource):
    async def send_message(self, text):
        raise SourceError("host unreachable")


def _client(tmp_path, messages, source_cls=StaticContentSource):
    source = source_cls(messages, MIRA)
    app = create_app(data_dir=tmp_path, source=source, scheduler=FakeScheduler())
    return TestClient(app), source


@pytest.fixture
def story(tmp_path):
    client, source = _client(tmp_path, [
        message("The horn sounds.\nMira: 「You came.」"),
        message("Mira: Well? 「Board」「Stay」"),
    ])
    client.post("/api/player/load")
    return client, source


def _session(client):
    return client.app.state.session


# ── Basics ───────────────────────────────────────────────


def test_health(tmp_path):
    client, _ = _client(tmp_path, [])
    assert client.get("/api/health").json() == {"status": "ok"}


def test_settings_roundtrip(tmp_path):
    client, _ = _client(tmp_path, [])
    assert client.get("/api/settings").json()["typewriter_speed"] == 50
    resp = client.patch("/api/settings", json={"typewriter_speed": 10, "typewriter_enabled": False})
    assert resp.json()["typewriter_speed"] == 10
    assert _session(client).animator.speed_ms == 10
    assert _session(client).animator.enabled is False


# ── Player ───────────────────────────────────────────────


def test_load(story):
    client, _ = story
    frame = client.get("/api/player/frame").json()
    assert frame["index"] == 2
    assert frame["total"] == 3
    assert frame["speaker_name"] == "Mira"
    assert frame["background"] == "mira.png"
    assert frame["text"] == "W"
    assert frame["revealing"] is True


def test_new_game(story):
    client, _ = story
    frame = client.post("/api/player/load", json={"new_game": True}).json()
    assert frame["index"] == 0


def test_skip_reaches_end_with_choices(story):
    client, _ = story
    frame = client.post("/api/player/skip").json()
    assert frame["text"] == "Well? 「Board」「Stay」"
    assert frame["end_reached"] is True
    assert client.get("/api/player/choices").json() == [
        {"id": 1, "text": "Board"},
        {"id": 2, "text": "Stay"},
    ]


def test_typewriter_ticks(story):
    client, _ = story
    _session(client).scheduler.advance(100)
    assert client.get("/api/player/frame").json()["text"] == "Wel"


def test_navigation(story):
    client, _ = story
    assert client.post("/api/player/prev").json()["index"] == 1
    assert client.post("/api/player/jump/99").json()["index"] == 1
    assert client.post("/api/player/jump/0").json()["index"] == 0
    assert client.post("/api/player/next").json()["index"] == 1
    assert client.post("/api/player/restart").json()["index"] == 0


def test_advance(story):
    client, _ = story
    client.post("/api/player/jump/0")
    frame = client.post("/api/player/advance").json()
    assert (frame["index"], frame["text"]) == (0, "The horn sounds.")
    assert client.post("/api/player/advance").json()["index"] == 1


def test_select_choice(story):
    client, source = story
    client.post("/api/player/skip")
    frame = client.post("/api/player/choices/2").json()
    assert source.sent == ["Stay"]
    assert frame["streaming"] is True
    assert frame["total"] == 4


def test_unknown_choice(story):
    client, _ = story
    client.post("/api/player/skip")
    assert client.post("/api/player/choices/7").status_code == 404


def test_continue(story):
    client, source = story
    frame = client.post("/api/player/continue").json()
    assert source.sent == [""]
    assert frame["streaming"] is True
    assert frame["loading"] is True


def test_continue_host_error(tmp_path):
    client, _ = _client(tmp_path, [message("Hi")], source_cls=RejectingSource)
    client.post("/api/player/load")
    resp = client.post("/api/player/continue")
    assert resp.status_code == 502
    assert "host unreachable" in resp.json()["detail"]


# ── Host generation events ───────────────────────────────


def test_stream_events(story):
    client, source = story
    client.post("/api/player/stream/start", json={"message_index": 2})
    assert client.post("/api/player/stream/token", json={"delta": "Tam: Boat's "}).json() == {"ok": True}
    client.post("/api/player/stream/token", json={"delta": "leaving."})
    _session(client).scheduler.advance(16)
    assert client.get("/api/player/frame").json()["total"] == 4

    source.messages.append(message("Tam: Boat's leaving.\nThe horn sounds again."))
    body = client.post("/api/player/stream/end").json()
    assert body["result"]["final"] is True
    assert body["result"]["tail_count"] == 2
    assert body["frame"]["total"] == 5
    assert body["frame"]["streaming"] is False


def test_stream_stop_without_session(story):
    client, _ = story
    assert client.post("/api/player/stream/stop").json()["result"] is None


def test_stream_poll(story):
    client, source = story
    client.patch("/api/settings", json={"poll_interval_ms": 1, "max_idle_polls": 1})
    source.messages.append(message("A reply arrives."))
    client.post("/api/player/stream/poll", json={"message_index": 2})
    frame = client.get("/api/player/frame").json()
    assert frame["total"] == 4
    assert frame["streaming"] is False


def test_stream_poll_follows_requested_message(tmp_path, caplog):
    client, source = _client(tmp_path, [message("Mira: Are you leaving?")])
    client.post("/api/player/load")
    client.patch("/api/settings", json={"poll_interval_ms": 1, "max_idle_polls": 1})
    source.messages.append(message("I walk away.", speaker="You", is_user=True))
    source.messages.append(message("Mira: Wait for me!"))
    with caplog.at_level(logging.WARNING):
        client.post("/api/player/stream/poll", json={"message_index": 2})
    assert "restarting" not in caplog.text
    frames = _session(client).store.frames
    assert len(frames) == 2
    assert (frames[-1].text, frames[-1].speaker_name) == ("Wait for me!", "Mira")


# ── Saves ────────────────────────────────────────────────


def test_save_list_load_delete(story):
    client, _ = story
    client.post("/api/player/jump/0")
    summary = client.post("/api/saves/one").json()
    assert summary["position"] == 1
    client.post("/api/player/jump/2")
    assert [s["slot_id"] for s in client.get("/api/saves").json()] == ["one"]
    assert client.post("/api/saves/one/load").json()["index"] == 0
    assert client.delete("/api/saves/one").json() == {"ok": True}
    assert client.delete("/api/saves/one").status_code == 404


def test_load_missing_slot(story):
    client, _ = story
    assert client.post("/api/saves/nothing/load").status_code == 404


def test_invalid_slot_id(story):
    client, _ = story
    assert client.post("/api/saves/bad%20id").status_code == 400
