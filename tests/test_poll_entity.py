import pytest

from domain.common.exceptions import StateError, ValidationError
from domain.poll import Poll, coerce_option_index


def _persisted(question="Best track?", options=("AI", "Web3")) -> Poll:
    poll = Poll.new(question, list(options), "org-1")
    poll.id = 7
    return poll


def test_new_poll_trims_and_starts_at_zero():
    poll = Poll.new("  Best track?  ", [" AI ", "", "   ", "Web3", 3], "org-1")
    assert poll.question == "Best track?"
    assert poll.options == ["AI", "Web3"]
    assert poll.counts == [0, 0]
    assert poll.is_closed is False


@pytest.mark.parametrize("options", [[], ["only"], ["one", "  ", ""], "AI,Web3"])
def test_new_poll_needs_two_real_options(options):
    with pytest.raises(ValidationError) as ei:
        Poll.new("Q", options, "org-1")
    assert ei.value.field == "options"


def test_new_poll_rejects_blank_question():
    with pytest.raises(ValidationError):
        Poll.new("   ", ["a", "b"], "org-1")


@pytest.mark.parametrize("value, expected", [(0, 0), (2, 2), (1.0, 1), (-1, -1)])
def test_coerce_option_index_accepts_integers(value, expected):
    assert coerce_option_index(value) == expected


@pytest.mark.parametrize("value", [True, False, "1", "one", 1.5, None, [0], {"i": 0}])
def test_coerce_option_index_rejects_non_integers(value):
    with pytest.raises(ValidationError):
        coerce_option_index(value)


def test_vote_on_closed_poll_is_state_error_before_range_check():
    poll = _persisted()
    assert poll.close() is True
    with pytest.raises(StateError):
        poll.new_vote("user-a", 99)


def test_shape_is_checked_before_state():
    poll = _persisted()
    poll.close()
    with pytest.raises(ValidationError):
        poll.new_vote("user-a", "0")


def test_out_of_range_vote_is_validation_error():
    poll = _persisted()
    with pytest.raises(ValidationError) as ei:
        poll.new_vote("user-a", 2)
    assert ei.value.details == {"min": 0, "max": 1}


def test_close_is_monotonic():
    poll = _persisted()
    assert poll.close() is True
    assert poll.close() is False
    assert poll.is_closed is True
