from sflow_trigger_mcp.core.models import CounterRecord
from sflow_trigger_mcp.core.tracker import InterfaceTracker, TrackMode


def _rec(if_index: int) -> CounterRecord:
    return CounterRecord(if_index=if_index, in_octets=0, out_octets=0, in_packets=0, out_packets=0)


def test_first_counter_pins_interface_and_latches_counter_mode():
    tracker = InterfaceTracker()
    assert tracker.mode == TrackMode.UNSET
    assert tracker.accept_counter(_rec(3))
    assert tracker.if_index == 3
    assert tracker.counter_mode


def test_other_interfaces_are_rejected():
    tracker = InterfaceTracker()
    tracker.accept_counter(_rec(3))
    assert not tracker.accept_counter(_rec(4))
    assert tracker.if_index == 3


def test_flow_fallback_until_counters_arrive():
    tracker = InterfaceTracker()
    assert tracker.accept_flow()
    assert tracker.mode == TrackMode.FLOW_FALLBACK
    tracker.accept_counter(_rec(1))
    assert tracker.mode == TrackMode.COUNTER
    assert not tracker.accept_flow()
    assert tracker.mode == TrackMode.COUNTER
