"""
Property-based tests for the work order state machine.

Hypothesis drives random start/pause/complete sequences and checks that the
quantity and status invariants hold after every step, accepted or rejected.
"""

from hypothesis import given, settings, strategies as st

from linestart.domain.scheduling.services.completion_splitter import CompletionSplitter
from linestart.domain.scheduling.value_objects.duration import estimated_duration
from linestart.domain.scheduling.value_objects.enums import WorkOrderStatus
from linestart.domain.shared.exceptions import InvalidQuantity, InvalidTransition

from .factories import ACTOR, T0, make_work_order, minutes


@st.composite
def actions(draw):
    """One operator action: start, pause, or complete with a delivered quantity."""
    kind = draw(st.sampled_from(["start", "pause", "complete"]))
    if kind == "complete":
        return (kind, draw(st.integers(min_value=-5, max_value=150)))
    return (kind, None)


def apply(work_order, action, step):
    kind, quantity = action
    now = T0 + minutes(step)
    if kind == "start":
        work_order.start(ACTOR, now)
    elif kind == "pause":
        work_order.pause(ACTOR, now)
    else:
        work_order.complete(quantity, ACTOR, now)


def assert_invariants(work_order):
    assert 0 <= work_order.completed_qty <= work_order.target_qty
    assert (work_order.status == WorkOrderStatus.COMPLETED) == (
        work_order.completed_qty == work_order.target_qty
    )
    if work_order.status == WorkOrderStatus.PARTIAL:
        assert 0 < work_order.completed_qty < work_order.target_qty
    if work_order.status in {WorkOrderStatus.QUEUED, WorkOrderStatus.ACTIVE, WorkOrderStatus.PAUSED}:
        assert work_order.completed_qty == 0


class TestWorkOrderProperties:
    @given(
        target=st.integers(min_value=1, max_value=120),
        sequence=st.lists(actions(), max_size=12),
    )
    @settings(max_examples=200, deadline=None)
    def test_invariants_hold_for_any_action_sequence(self, target, sequence):
        work_order = make_work_order(target_qty=target)

        for step, action in enumerate(sequence):
            before = work_order.model_dump()
            completed_before = work_order.completed_qty
            try:
                apply(work_order, action, step)
            except (InvalidTransition, InvalidQuantity):
                # Rejected actions leave the order untouched
                assert work_order.model_dump() == before
                assert work_order.get_domain_events() == []
            else:
                assert len(work_order.get_domain_events()) == 1
                work_order.clear_domain_events()

            assert work_order.completed_qty >= completed_before
            assert work_order.target_qty == target
            assert_invariants(work_order)

    @given(
        target=st.integers(min_value=2, max_value=500),
        data=st.data(),
    )
    @settings(max_examples=100, deadline=None)
    def test_split_conserves_quantity(self, target, data):
        delivered = data.draw(st.integers(min_value=1, max_value=target - 1))
        work_order = make_work_order(target_qty=target)
        work_order.start(ACTOR, T0)

        result = CompletionSplitter().complete(work_order, delivered, ACTOR, T0)

        remainder = result.remainder
        assert work_order.status == WorkOrderStatus.PARTIAL
        assert remainder.status == WorkOrderStatus.QUEUED
        assert remainder.resource_id is None
        assert remainder.completed_qty == 0
        assert work_order.completed_qty + remainder.target_qty == target

    @given(
        target=st.integers(min_value=1, max_value=500),
        paused=st.booleans(),
    )
    @settings(max_examples=100, deadline=None)
    def test_exact_delivery_never_splits(self, target, paused):
        work_order = make_work_order(target_qty=target)
        work_order.start(ACTOR, T0)
        if paused:
            work_order.pause(ACTOR, T0)

        result = CompletionSplitter().complete(work_order, target, ACTOR, T0)

        assert result.remainder is None
        assert work_order.status == WorkOrderStatus.COMPLETED


class TestDurationProperties:
    @given(
        setup=st.integers(min_value=0, max_value=240),
        quantity=st.integers(min_value=0, max_value=10_000),
        rate=st.integers(min_value=1, max_value=1_000),
    )
    @settings(max_examples=200)
    def test_more_units_never_take_less_time(self, setup, quantity, rate):
        shorter = estimated_duration(setup, quantity, rate)
        longer = estimated_duration(setup, quantity + 1, rate)

        assert setup <= shorter <= longer
