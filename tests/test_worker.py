from __future__ import annotations

from pathlib import Path

import pytest

from focusforge.domain.errors import FocusForgeError
from focusforge.services.timers.timer_service import TimerService
from focusforge.services.timers.worker import ACTIONS, TimerRunner, build_parser
from focusforge.utils.constants import TIMER_BREAK, TIMER_KINDS, TIMER_REMINDER


@pytest.fixture()
def timers(paths, file_service, launcher, clock) -> TimerService:
    return TimerService(paths, file_service, launcher, clock=clock)


def _runner(timers, token, action, **kwargs) -> tuple[TimerRunner, list[float]]:
    sleeps: list[float] = []
    runner = TimerRunner(timers, TIMER_REMINDER, token, 60, action, sleep=sleeps.append, **kwargs)
    return runner, sleeps


def test_one_shot_fires_once_and_releases_marker(timers, paths):
    marker = timers.spawn(TIMER_REMINDER, 60)
    calls = []
    runner, sleeps = _runner(timers, marker.token, lambda: calls.append(1))

    assert runner.run() == 1
    assert calls == [1]
    assert sleeps == [60]
    assert not paths.marker(TIMER_REMINDER).exists()


def test_repeating_runner_stops_at_max_runs(timers):
    marker = timers.spawn(TIMER_REMINDER, 60, repeat=True)
    runner, sleeps = _runner(timers, marker.token, lambda: True, repeat=True, max_runs=3)
    assert runner.run() == 3
    assert len(sleeps) == 3


def test_repeating_runner_stops_when_action_returns_false(timers):
    marker = timers.spawn(TIMER_REMINDER, 60, repeat=True)
    results = iter([True, True, False, True])
    runner, _ = _runner(timers, marker.token, lambda: next(results), repeat=True)
    assert runner.run() == 3


def test_superseded_runner_exits_without_firing(timers, paths):
    old = timers.spawn(TIMER_REMINDER, 60)
    new = timers.spawn(TIMER_REMINDER, 60)
    fired = []
    runner, _ = _runner(timers, old.token, lambda: fired.append(1))

    assert runner.run() == 0
    assert fired == []
    # the newer worker's marker is left alone
    assert timers.owns(TIMER_REMINDER, new.token)


def test_cancelled_runner_exits(timers):
    marker = timers.spawn(TIMER_REMINDER, 60, repeat=True)
    timers.cancel(TIMER_REMINDER)
    runner, _ = _runner(timers, marker.token, lambda: True, repeat=True)
    assert runner.run() == 0


def test_action_errors_are_logged_and_repeat_continues(timers):
    marker = timers.spawn(TIMER_REMINDER, 60, repeat=True)

    def flaky():
        raise FocusForgeError("state went away")

    runner, _ = _runner(timers, marker.token, flaky, repeat=True, max_runs=2)
    assert runner.run() == 2


def test_actions_cover_every_timer_kind():
    assert set(ACTIONS) == set(TIMER_KINDS)


def test_break_action_marks_break_auto_completed(container):
    container.breaks.start("short")
    ACTIONS[TIMER_BREAK](container)
    assert container.breaks.status().auto_completed is True


def test_parser_reads_worker_command_line(tmp_path):
    args = build_parser().parse_args(
        ["--kind", TIMER_BREAK, "--duration", "300", "--token", "abc", "--work-dir", str(tmp_path)]
    )
    assert args.kind == TIMER_BREAK
    assert args.duration == 300
    assert args.token == "abc"
    assert args.work_dir == Path(tmp_path)
    assert args.repeat is False


def test_parser_rejects_unknown_kind(tmp_path):
    with pytest.raises(SystemExit):
        build_parser().parse_args(
            ["--kind", "egg", "--duration", "1", "--token", "t", "--work-dir", str(tmp_path)]
        )


def test_worker_args_round_trip_through_parser(timers, paths):
    argv = timers.worker_args(TIMER_REMINDER, 1800, "tok", repeat=True)[2:]
    args = build_parser().parse_args(argv)
    assert (args.kind, args.duration, args.token, args.repeat) == (TIMER_REMINDER, 1800, "tok", True)
    assert args.work_dir == paths.root
