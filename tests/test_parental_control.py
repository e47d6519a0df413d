import pytest

from allowance_tracker.parental_control import ACCESS_DENIED, ACCESS_GRANTED, sanitize_attempt
from allowance_tracker.service import AllowanceTracker


@pytest.mark.parametrize("answer", ["ice cold", "ICE COLD", "  Ice Cold  "])
def test_correct_answer_is_case_and_space_insensitive(tracker, answer) -> None:
    outcome = tracker.validate_parental_answer(answer)

    assert outcome.success is True
    assert outcome.message == ACCESS_GRANTED


def test_wrong_answer_is_denied(tracker) -> None:
    outcome = tracker.validate_parental_answer("lukewarm")

    assert outcome.success is False
    assert outcome.message == ACCESS_DENIED


def test_attempts_are_recorded_newest_first(tracker) -> None:
    for answer in ("warm", "hot", "ice cold"):
        tracker.validate_parental_answer(answer)

    attempts = tracker.parental_attempts()
    assert [attempt.attempted_value for attempt in attempts] == ["ice cold", "hot", "warm"]
    assert [attempt.success for attempt in attempts] == [True, False, False]
    assert len(tracker.parental_attempts(limit=2)) == 2


def test_stats(tracker) -> None:
    assert tracker.parental_stats().success_rate == 0.0

    for answer in ("nope", "ice cold", "nah"):
        tracker.validate_parental_answer(answer)

    stats = tracker.parental_stats()
    assert stats.total_attempts == 3
    assert stats.successful_attempts == 1
    assert stats.failed_attempts == 2
    assert stats.success_rate == 33.33


def test_custom_answer(store, clock) -> None:
    tracker = AllowanceTracker(store, clock=clock, parental_answer="Blue Whale")

    assert tracker.validate_parental_answer("blue whale").success is True
    assert tracker.validate_parental_answer("ice cold").success is False


def test_attempt_values_are_masked_in_logs(tracker) -> None:
    tracker.validate_parental_answer("secret")

    entry = tracker.recent_logs(1)[-1]
    assert entry["event"] == "parental_control_attempt"
    assert entry["attempted"] == "sec..."
    assert entry["level"] == "warn"
    assert sanitize_attempt("abc") == "***"
