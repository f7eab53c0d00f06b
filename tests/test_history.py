"""Tests for the per-room chat history buffer."""
from roomcall.models.models import ChatEntry
from roomcall.services.history import HistoryBuffer


def entry(n):
    return ChatEntry(user="alice", time=n, text=str(n))


def test_history_evicts_oldest_first():
    """Appending 501 entries keeps 500, with entry #2 now first."""
    history = HistoryBuffer(limit=500)
    for n in range(1, 502):
        history.append("lobby", entry(n))

    entries = history.get("lobby")
    assert len(entries) == 500
    assert entries[0].text == "2"
    assert entries[-1].text == "501"


def test_history_is_per_room():
    history = HistoryBuffer(limit=3)
    history.append("a", entry(1))
    history.append("b", entry(2))
    assert [e.text for e in history.get("a")] == ["1"]
    assert [e.text for e in history.get("b")] == ["2"]
    assert history.get("unknown") == []


def test_payload_omits_missing_fields():
    history = HistoryBuffer()
    history.append("lobby", entry(1))
    assert history.payload("lobby") == [{"user": "alice", "time": 1, "text": "1"}]


def test_drain_reports_only_rooms_with_entries():
    history = HistoryBuffer()
    history.create("quiet")
    history.append("busy", entry(1))

    assert history.drain() == ["busy"]
    assert history.get("busy") == []
    # Nothing left, so a second drain announces nothing
    assert history.drain() == []


def test_drop_forgets_room():
    history = HistoryBuffer()
    history.append("lobby", entry(1))
    history.drop("lobby")
    assert "lobby" not in history.buffers
