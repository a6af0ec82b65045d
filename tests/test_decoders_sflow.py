import struct

from sflow_packets import (
    counter_sample,
    counter_sample_for,
    datagram,
    flow_sample,
    if_counters,
    record,
)
from sflow_trigger_mcp.capabilities.sflow_udp.decoder import decode_records, decode_sflow
from sflow_trigger_mcp.core.models import CounterRecord, FlowRecord, SampleKind


def test_sflow_decoder_parses_generic_interface_counters():
    data = datagram([
        counter_sample_for(
            7,
            in_octets=2**40 + 5,
            in_ucast=100,
            in_mcast=20,
            in_bcast=3,
            out_octets=999,
            out_ucast=10,
            out_mcast=2,
            out_bcast=1,
        )
    ])
    samples = decode_sflow(data)
    assert len(samples) == 1
    s = samples[0]
    assert s.kind == SampleKind.COUNTER
    assert s.record == CounterRecord(
        if_index=7,
        in_octets=2**40 + 5,
        out_octets=999,
        in_packets=123,
        out_packets=13,
    )


def test_sflow_decoder_parses_flow_sample():
    data = datagram([flow_sample(512, frame_lengths=[1500])])
    records = decode_records(data)
    assert records == [FlowRecord(sampling_rate=512, frame_length=1500)]
    assert records[0].bytes == 1500 * 512
    assert records[0].packets == 512


def test_flow_sample_without_header_record_still_counts_packets():
    records = decode_records(datagram([flow_sample(64)]))
    assert records == [FlowRecord(sampling_rate=64, frame_length=0)]


def test_flow_sample_skips_other_records():
    other = record(1001, b"\x00" * 12)
    records = decode_records(datagram([flow_sample(10, frame_lengths=[100, 60], extra_records=[other])]))
    assert records[0].frame_length == 160


def test_wrong_version_is_rejected():
    data = datagram([counter_sample_for(1, in_octets=10)], version=4)
    assert decode_sflow(data) == []


def test_buffer_without_sample_count_is_rejected():
    data = datagram([counter_sample_for(1)])
    assert decode_sflow(data[:24]) == []
    assert decode_sflow(b"") == []
    assert decode_sflow(struct.pack("!I", 5)) == []


def test_unknown_agent_address_type_uses_ipv4_layout():
    for addr_type in (0, 9):
        data = bytearray(datagram([counter_sample_for(7, in_octets=3)]))
        struct.pack_into("!I", data, 4, addr_type)
        records = decode_records(bytes(data))
        assert len(records) == 1
        assert records[0].if_index == 7
        assert records[0].in_octets == 3


def test_ipv6_agent_address():
    data = datagram([counter_sample_for(4, in_octets=1)], ipv6=True)
    records = decode_records(data)
    assert len(records) == 1
    assert records[0].if_index == 4


def test_unknown_sample_is_skipped_by_length():
    data = datagram([
        (4, b"\xff" * 20),
        counter_sample_for(2, in_ucast=5),
    ])
    samples = decode_sflow(data)
    assert [s.kind for s in samples] == [SampleKind.OTHER, SampleKind.COUNTER]
    assert samples[0].record is None
    assert samples[0].length == 20
    assert samples[1].record.in_packets == 5


def test_enterprise_bits_are_masked():
    tag, body = counter_sample_for(3)
    data = datagram([((1 << 12) | tag, body)])
    assert decode_sflow(data)[0].kind == SampleKind.COUNTER


def test_truncated_sample_stops_decoding_but_keeps_earlier_samples():
    data = datagram([counter_sample_for(1, in_octets=10), counter_sample_for(1, in_octets=20)])
    samples = decode_sflow(data[:-4])
    assert len(samples) == 1
    assert samples[0].record.in_octets == 10


def test_sample_count_larger_than_payload():
    data = datagram([counter_sample_for(1)], num_samples=5)
    assert len(decode_sflow(data)) == 1


def test_counter_sample_skips_other_records_before_generic():
    ethernet = record(2, b"\x00" * 52)
    data = datagram([counter_sample([ethernet, record(1, if_counters(9, in_octets=77))])])
    records = decode_records(data)
    assert records[0].if_index == 9
    assert records[0].in_octets == 77


def test_counter_record_past_sample_boundary_is_not_read():
    oversized = struct.pack("!II", 1, 200) + if_counters(9)
    data = datagram([counter_sample([oversized])])
    samples = decode_sflow(data)
    assert samples[0].kind == SampleKind.COUNTER
    assert samples[0].record is None


def test_short_generic_record_is_ignored():
    data = datagram([counter_sample([record(1, b"\x00" * 40)])])
    assert decode_records(data) == []
