import pytest

from modbuild.core.publish.state_machine import (
    PublishState,
    allowed_next,
    can_transition,
    ensure_transition,
    is_terminal,
)


def test_unchecked_branches():
    assert allowed_next(PublishState.UNCHECKED) == {
        "NOT_FOUND": True,
        "FOUND_MATCH": True,
        "FOUND_MISMATCH": True,
        "FETCH_ERROR": True,
    }


@pytest.mark.parametrize(
    "src,dst",
    [
        (PublishState.NOT_FOUND, PublishState.PUBLISH),
        (PublishState.FOUND_MATCH, PublishState.SKIP),
        (PublishState.FOUND_MISMATCH, PublishState.PUBLISH),
        (PublishState.FETCH_ERROR, PublishState.FAIL),
    ],
)
def test_outcomes(src, dst):
    assert can_transition(src, dst)


@pytest.mark.parametrize(
    "src,dst",
    [
        (PublishState.UNCHECKED, PublishState.PUBLISH),
        (PublishState.FOUND_MATCH, PublishState.PUBLISH),
        (PublishState.NOT_FOUND, PublishState.SKIP),
        (PublishState.SKIP, PublishState.PUBLISH),
        (PublishState.PUBLISH, PublishState.PUBLISH),
    ],
)
def test_illegal_transitions(src, dst):
    with pytest.raises(ValueError, match="Illegal transition"):
        ensure_transition(src, dst)


def test_terminal_states():
    assert {s for s in PublishState if is_terminal(s)} == {
        PublishState.PUBLISH,
        PublishState.SKIP,
        PublishState.FAIL,
    }
