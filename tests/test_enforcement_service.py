from __future__ import annotations

import json

import pytest

from focusforge.domain.errors import BreakRequiredError, InvalidArgumentError, InvalidModeError

from conftest import DictConfig


def test_defaults_when_nothing_persisted(container):
    rec = container.enforcement.load()
    assert rec.mode == "moderate"
    assert rec.violations == 0
    assert container.enforcement.get_violations() == 0
    assert container.enforcement.mode == "moderate"


def test_save_load_clear_round_trip(container):
    enf = container.enforcement
    rec = enf.load()
    rec.violations = 4
    rec.active_project = "alpha"
    enf.save(rec)

    data = json.loads(container.paths.enforcement_json.read_text(encoding="utf-8"))
    assert data["violations"] == 4
    assert data["updated"] == "2024-03-14T09:00:00Z"
    assert enf.load().active_project == "alpha"

    enf.clear()
    assert not container.paths.enforcement_json.exists()
    assert enf.get_violations() == 0


def test_corrupt_state_resets_to_defaults(container):
    container.paths.enforcement_json.write_text("[]", encoding="utf-8")
    assert container.enforcement.load().violations == 0


def test_record_violation_counts_and_reports_threshold(container):
    outcomes = [container.enforcement.record_violation("slack") for _ in range(3)]
    assert [o.violations for o in outcomes] == [1, 2, 3]
    assert outcomes[-1].threshold_reached is True
    # moderate mode warns but never requires a break
    assert outcomes[-1].break_required is False
    assert outcomes[-1].pause_session is False
    assert container.enforcement.get_violations() == 3


def test_violations_are_ignored_when_enforcement_is_off(container):
    container.enforcement.set_mode("off")
    outcome = container.enforcement.record_violation("anything")
    assert outcome.recorded is False
    assert container.enforcement.get_violations() == 0


def test_reset_violations_is_idempotent(container):
    container.enforcement.record_violation()
    assert container.enforcement.reset_violations() == 0
    assert container.enforcement.reset_violations() == 0
    assert container.enforcement.get_violations() == 0


def test_strict_gate_survives_reset_until_a_break_is_taken(container, clock):
    enf = container.enforcement
    enf.set_mode("strict")
    enf.require_break("short")

    with pytest.raises(BreakRequiredError):
        enf.enforce_break()
    enf.reset_violations()
    with pytest.raises(BreakRequiredError):
        enf.enforce_break()

    container.breaks.start("short")
    clock.advance(300)
    container.breaks.stop()
    enf.enforce_break()


def test_gate_is_open_outside_strict_mode(container):
    container.enforcement.require_break("long")
    container.enforcement.enforce_break()
    container.enforcement.clear_break_requirement()
    assert container.enforcement.load().break_required is False


def test_require_break_validates_type(container):
    with pytest.raises(InvalidArgumentError):
        container.enforcement.require_break("nap")


def test_strict_threshold_sets_break_required(container):
    container.enforcement.set_mode("strict")
    for _ in range(2):
        container.enforcement.record_violation()
    outcome = container.enforcement.record_violation()
    assert outcome.break_required is True
    assert outcome.pause_session is True
    assert container.enforcement.load().break_type_required == "short"


@pytest.mark.parametrize("bad", ["lenient", "", "STRICTER"])
def test_set_mode_rejects_unknown_modes(container, bad):
    with pytest.raises(InvalidModeError):
        container.enforcement.set_mode(bad)


def test_set_mode_persists_and_keeps_counters(container):
    container.enforcement.record_violation()
    change = container.enforcement.set_mode("Coaching")
    assert change.mode == "coaching"
    assert change.previous == "moderate"
    assert change.warning is None
    assert container.enforcement.mode == "coaching"
    assert container.enforcement.get_violations() == 1


def test_override_wins_and_set_mode_warns(make_container):
    c = make_container(config=DictConfig({"enforcement": {"mode": "strict"}}))
    change = c.enforcement.set_mode("coaching")
    assert change.effective_mode == "strict"
    assert change.warning is not None
    assert c.enforcement.mode == "strict"
    assert c.enforcement.load().mode == "coaching"
    assert c.enforcement.status().override == "strict"


def test_close_session_keeps_mode_and_pending_break(container, clock):
    enf = container.enforcement
    enf.set_mode("strict")
    enf.open_session("goal", "/src/alpha")
    enf.record_violation()
    rec = enf.close_session(clock(), require_break="long")
    assert rec.mode == "strict"
    assert rec.violations == 0
    assert rec.active_project is None
    assert rec.active_goal is None
    assert rec.break_required is True
    assert rec.break_type_required == "long"


# --- project switching ---


def test_project_switch_ignored_outside_strict_or_session(container):
    assert container.enforcement.check_project_switch("/a/alpha", "/a/beta").allowed
    container.enforcement.set_mode("strict")
    check = container.enforcement.check_project_switch("/a/alpha", "/a/beta", session_active=False)
    assert check.allowed and not check.violation


def test_first_switch_sets_project_then_counts_violations(container):
    enf = container.enforcement
    enf.set_mode("strict")
    first = enf.check_project_switch("/a/alpha", "/a/beta")
    assert first.allowed and first.active_project == "beta"

    same = enf.check_project_switch("/a/beta", "/b/beta/")
    assert same.allowed and not same.violation

    away = enf.check_project_switch("/a/beta", "/a/gamma")
    assert away.allowed is True
    assert away.violation is True
    assert enf.get_violations() == 1


def test_blocked_switch_is_refused_and_counted(make_container):
    c = make_container(strict_block_project_switch=True)
    c.enforcement.set_mode("strict")
    c.enforcement.open_session("", "/src/alpha")
    check = c.enforcement.check_project_switch("/src/alpha", "/src/beta")
    assert check.allowed is False
    assert check.requested_project == "beta"
    assert c.enforcement.get_violations() == 1


def test_scan_activity_applies_pwd_changes(container):
    container.enforcement.set_mode("strict")
    container.enforcement.open_session("", "/src/alpha")
    events = [
        {"type": "command", "cmd": "ls"},
        {"type": "pwd_change", "from": "/src/alpha", "to": "/src/alpha/docs"},
        {"type": "pwd_change", "from": "/src/alpha", "to": "/src/beta"},
        {"type": "pwd_change", "from": "/src/beta"},
    ]
    found = container.enforcement.scan_activity(events)
    assert [f.requested_project for f in found] == ["docs", "beta"]
    assert container.enforcement.get_violations() == 2


def test_scan_recent_reads_activity_log(container, clock):
    container.enforcement.set_mode("strict")
    container.enforcement.open_session("", "/src/alpha")
    activity = container.paths.activity_dir
    activity.mkdir(parents=True)
    lines = [
        {"timestamp": "2024-03-14T08:00:00Z", "type": "pwd_change", "from": "/src/alpha", "to": "/src/old"},
        {"timestamp": "2024-03-14T09:10:00Z", "type": "pwd_change", "from": "/src/alpha", "to": "/src/beta"},
    ]
    (activity / "activity_2024-03-14.jsonl").write_text(
        "\n".join(json.dumps(line) for line in lines) + "\nnot json\n", encoding="utf-8"
    )
    clock.advance(3600)
    found = container.enforcement.scan_recent(since=clock().replace(hour=9, minute=0))
    assert [f.requested_project for f in found] == ["beta"]
