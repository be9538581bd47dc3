import pytest

from focusforge.domain.errors import CorruptStateError
from focusforge.domain.models import BreakRecord, EnforcementRecord, SessionRecord

from conftest import T0


def test_session_record_defaults():
    r = SessionRecord(status="active", start_time="2024-03-14T09:00:00Z")
    assert r.goal == ""
    assert r.pomodoro_count == 0
    assert r.is_live is True
    assert r.is_paused is False


def test_session_worked_seconds_excludes_pause(clock):
    r = SessionRecord(
        status="paused",
        start_time="2024-03-14T08:00:00Z",
        paused_duration_seconds=600,
        paused_at="2024-03-14T08:50:00Z",
    )
    # 3600s since start, 600s banked, 600s in the current pause
    assert r.paused_seconds(T0) == 1200
    assert r.worked_seconds(T0) == 2400


def test_session_from_dict_coerces_loose_fields():
    r = SessionRecord.from_dict(
        {"status": "active", "start_time": "2024-03-14T09:00:00Z", "pomodoro_count": "-3", "project": ""}
    )
    assert r.pomodoro_count == 0
    assert r.project is None
    assert r.last_updated == "2024-03-14T09:00:00Z"


@pytest.mark.parametrize(
    "doc",
    [
        None,
        "active",
        {"start_time": "2024-03-14T09:00:00Z"},
        {"status": "active"},
        {"status": "active", "start_time": "yesterday"},
        {"status": "paused", "start_time": "2024-03-14T09:00:00Z", "paused_at": "garbage"},
        {"status": "paused", "start_time": "2024-03-14T09:00:00Z", "paused_at": 1710406800},
        {"status": "active", "start_time": "2024-03-14T09:00:00Z", "last_updated": "soon"},
    ],
)
def test_session_from_dict_rejects_corrupt_documents(doc):
    with pytest.raises(CorruptStateError):
        SessionRecord.from_dict(doc)


def test_break_record_remaining_never_negative():
    b = BreakRecord(break_type="short", start_time="2024-03-14T08:50:00Z", planned_duration_seconds=300)
    assert b.elapsed(T0) == 600
    assert b.remaining(T0) == 0
    assert b.is_live


@pytest.mark.parametrize(
    "doc",
    [
        {"break_type": "nap", "start_time": "2024-03-14T09:00:00Z", "planned_duration_seconds": 300},
        {"break_type": "short", "start_time": "2024-03-14T09:00:00Z", "planned_duration_seconds": 0},
        {"break_type": "short", "start_time": "2024-03-14T09:00:00Z", "planned_duration_seconds": True},
        {"break_type": "long", "planned_duration_seconds": 900},
    ],
)
def test_break_from_dict_rejects_corrupt_documents(doc):
    with pytest.raises(CorruptStateError):
        BreakRecord.from_dict(doc)


def test_enforcement_record_is_lenient():
    rec = EnforcementRecord.from_dict({"mode": "bogus", "violations": "x", "active_project": "alpha"})
    assert rec.mode == "moderate"
    assert rec.violations == 0
    assert rec.active_project == "alpha"
    assert rec.break_required is False
    assert EnforcementRecord.from_dict(rec.to_dict()) == rec


def test_enforcement_record_drops_unparseable_timestamps():
    rec = EnforcementRecord.from_dict(
        {"last_break_end": "garbage", "last_session_end": 42, "updated": "2024-03-14T09:00:00Z"}
    )
    assert rec.last_break_end is None
    assert rec.last_session_end is None
    assert rec.updated == "2024-03-14T09:00:00Z"
