import pytest

from focusforge.services.focus.focus_scorer import score


@pytest.mark.parametrize(
    "elapsed, violations, expected",
    [
        (0, 0, 5),
        (59, 0, 5),
        (60, 0, 7),
        (3600, 2, 5),
        (3600, 6, 1),
        (0, 50, 1),
        (120, -4, 7),
    ],
)
def test_score(elapsed, violations, expected):
    assert score(elapsed, violations) == expected
