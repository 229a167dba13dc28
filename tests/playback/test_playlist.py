"""Tests for galmode.playback.playlist — store invariants and startup handover."""

import pytest

from galmode.frames import PLACEHOLDER_TEXT
from galmode.models import Frame, PlaylistSnapshot
from galmode.playback import PlaylistStore, StartupChannel, StartupMessage


def _frames(n, prefix="f"):
    return [Frame(text=f"{prefix}{i}", background="bg.png") for i in range(n)]


# ── Construction ─────────────────────────────────────────


def test_defaults_to_last_frame():
    store = PlaylistStore(_frames(3))
    assert store.current_index == 2
    assert store.high_water_index == 2
    assert not store.is_placeholder


def test_empty_gets_placeholder():
    store = PlaylistStore([], placeholder_background="ph.png")
    assert len(store) == 1
    assert store.is_placeholder
    assert store.current_frame().text == PLACEHOLDER_TEXT
    assert store.current_frame().background == "ph.png"


def test_new_game_starts_at_zero():
    store = PlaylistStore(_frames(3), startup=StartupMessage(new_game=True))
    assert store.current_index == 0
    assert store.high_water_index == 0


def test_resume_index_clamped():
    store = PlaylistStore(_frames(3), startup=StartupMessage(resume_index=10))
    assert store.current_index == 2
    store = PlaylistStore(_frames(3), startup=StartupMessage(resume_index=-4))
    assert store.current_index == 0


def test_snapshot_frames_win():
    snapshot = PlaylistSnapshot(frames=_frames(5, "saved"), current_index=1, high_water_index=3)
    store = PlaylistStore(_frames(2), startup=StartupMessage(snapshot=snapshot))
    assert len(store) == 5
    assert store.current_frame().text == "saved1"
    assert store.high_water_index == 3


def test_snapshot_high_water_at_least_index():
    snapshot = PlaylistSnapshot(frames=_frames(5), current_index=4, high_water_index=1)
    store = PlaylistStore(startup=StartupMessage(snapshot=snapshot))
    assert store.high_water_index == 4


def test_empty_snapshot_keeps_parsed_frames():
    snapshot = PlaylistSnapshot(frames=[], current_index=1)
    store = PlaylistStore(_frames(3), startup=StartupMessage(snapshot=snapshot))
    assert len(store) == 3
    assert store.current_index == 1


# ── Index and high-water ─────────────────────────────────


def test_index_setter_clamps():
    store = PlaylistStore(_frames(3), startup=StartupMessage(new_game=True))
    store.current_index = 99
    assert store.current_index == 2
    store.current_index = -1
    assert store.current_index == 0


def test_high_water_never_decreases():
    store = PlaylistStore(_frames(4), startup=StartupMessage(new_game=True))
    store.current_index = 3
    store.current_index = 1
    assert store.high_water_index == 3
    store.replace_all(_frames(2))
    assert store.current_index == 1
    assert store.high_water_index == 3


def test_reaching_tail_clears_more_available():
    store = PlaylistStore(_frames(3), startup=StartupMessage(new_game=True))
    store.state.more_available = True
    store.current_index = 1
    assert store.state.more_available
    store.current_index = 2
    assert not store.state.more_available


# ── Mutation ─────────────────────────────────────────────


def test_replace_tail_keeps_head():
    store = PlaylistStore(_frames(3), startup=StartupMessage(new_game=True))
    head = store.frames[:2]
    store.replace_tail(2, _frames(3, "new"))
    assert store.frames[:2] == head
    assert [f.text for f in store.frames[2:]] == ["new0", "new1", "new2"]


def test_replace_tail_out_of_range():
    store = PlaylistStore(_frames(2))
    with pytest.raises(IndexError):
        store.replace_tail(3, [])


def test_replace_tail_over_placeholder():
    store = PlaylistStore([])
    store.replace_tail(0, _frames(2))
    assert not store.is_placeholder
    assert len(store) == 2


def test_replace_tail_to_nothing_restores_placeholder():
    store = PlaylistStore(_frames(1))
    store.replace_tail(0, [])
    assert store.is_placeholder
    assert len(store) == 1


def test_snapshot_roundtrip():
    store = PlaylistStore(_frames(3), startup=StartupMessage(resume_index=1))
    snapshot = store.snapshot()
    restored = PlaylistStore(startup=StartupMessage(snapshot=snapshot))
    assert restored.frames == store.frames
    assert restored.current_index == 1


# ── Startup channel ──────────────────────────────────────


def test_startup_channel_is_one_shot():
    channel = StartupChannel()
    assert channel.receive() is None
    channel.send(StartupMessage(new_game=True))
    assert channel.pending
    assert channel.receive().new_game
    assert not channel.pending
    assert channel.receive() is None
