from __future__ import annotations

BASE_SCORE = 5
WARMUP_SECONDS = 60
WARMUP_BONUS = 2
MIN_SCORE = 1
MAX_SCORE = 10


def score(elapsed_seconds: int, violations: int) -> int:
    """Score a live session 1-10: base 5, +2 once past the first minute, -1 per violation."""
    value = BASE_SCORE
    if elapsed_seconds >= WARMUP_SECONDS:
        value += WARMUP_BONUS
    value -= max(0, violations)
    return max(MIN_SCORE, min(MAX_SCORE, value))
