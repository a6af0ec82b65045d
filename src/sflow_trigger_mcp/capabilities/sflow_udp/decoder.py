#This is based on the official sFlow v5 datagram format text.
#It decodes:
#	1.	Datagram header
#	2.	Counter samples, generic interface counters record
#	3.	Flow samples, sampling rate and raw packet header frame length
#
#Every other sample or record type is skipped by its declared length.
from __future__ import annotations

import struct
from typing import List, Optional

from sflow_trigger_mcp.core.models import (
    CounterRecord,
    FlowRecord,
    Record,
    Sample,
    SampleKind,
)

SFLOW_VERSION = 5

SAMPLE_FLOW = 1
SAMPLE_COUNTER = 2

RECORD_GENERIC_IF_COUNTERS = 1
RECORD_RAW_PACKET_HEADER = 1

COUNTER_SAMPLE_HEADER_LEN = 12
FLOW_SAMPLE_HEADER_LEN = 32
GENERIC_IF_COUNTERS_LEN = 88

_FORMAT_MASK = 0xFFF


def _u32(data: bytes, off: int) -> int:
    return struct.unpack_from("!I", data, off)[0]


def _u64(data: bytes, off: int) -> int:
    return struct.unpack_from("!Q", data, off)[0]


def _samples_offset(data: bytes) -> Optional[int]:
    """
    Walk the datagram header and return the offset of num_samples.

    Datagram header contains:
      version, agent_address_type, agent_address (4 or 16 bytes),
      sub_agent_id, seq, sys_uptime, num_samples

    Returns None if the header is not sFlow v5 or is truncated.
    """
    if len(data) < 8:
        return None

    if _u32(data, 0) != SFLOW_VERSION:
        return None

    # Unknown address types are read with the 4 byte IPv4 layout.
    addr_type = _u32(data, 4)
    if addr_type == 2:
        off = 8 + 16
    else:
        off = 8 + 4

    off += 4  # sub_agent_id
    off += 4  # seq
    off += 4  # sys_uptime

    if off + 4 > len(data):
        return None
    return off


def decode_sflow(data: bytes) -> List[Sample]:
    """
    Decode an sFlow v5 datagram into its samples.

    Samples:
      sample_tag(4), sample_length(4), sample_data...

    The low 12 bits of the tag give the format: 1 flow sample,
    2 counter sample. Anything else is kept as SampleKind.OTHER
    and never interpreted.

    Decoding stops at the first sample whose declared length runs past
    the end of the datagram. Samples decoded before that are returned.
    """
    off = _samples_offset(data)
    if off is None:
        return []

    num_samples = _u32(data, off)
    off += 4

    samples: List[Sample] = []

    for _ in range(num_samples):
        if off + 8 > len(data):
            break

        sample_tag = _u32(data, off)
        sample_len = _u32(data, off + 4)
        off += 8

        if off + sample_len > len(data):
            break

        body = data[off : off + sample_len]
        off += sample_len

        sample_format = sample_tag & _FORMAT_MASK
        record: Optional[Record] = None

        if sample_format == SAMPLE_COUNTER:
            kind = SampleKind.COUNTER
            record = _decode_counter_sample(body)
        elif sample_format == SAMPLE_FLOW:
            kind = SampleKind.FLOW
            record = _decode_flow_sample(body)
        else:
            kind = SampleKind.OTHER

        samples.append(Sample(kind=kind, length=sample_len, payload=body, record=record))

    return samples


def decode_records(data: bytes) -> List[Record]:
    """
    Same as decode_sflow but keeps only the interpreted records.
    """
    return [s.record for s in decode_sflow(data) if s.record is not None]


def _decode_counter_sample(sample: bytes) -> Optional[CounterRecord]:
    """
    counter_sample:
      seq(4), source_id(4), record_count(4), records...

    The record list is walked up to the end of the sample rather than
    trusting record_count. The first generic interface counters record wins.
    """
    if len(sample) < COUNTER_SAMPLE_HEADER_LEN:
        return None

    end = len(sample)
    off = COUNTER_SAMPLE_HEADER_LEN

    while off + 8 <= end:
        record_format = _u32(sample, off) & _FORMAT_MASK
        record_len = _u32(sample, off + 4)
        off += 8

        if off + record_len > end:
            return None

        if record_format == RECORD_GENERIC_IF_COUNTERS and record_len >= GENERIC_IF_COUNTERS_LEN:
            return _decode_generic_if_counters(sample, off)

        off += record_len

    return None


def _decode_generic_if_counters(sample: bytes, off: int) -> CounterRecord:
    """
    if_counters (88 bytes), fields used:
      0 ifIndex, 24 ifInOctets(8), 32/36/40 ifInUcast/Mcast/Bcast,
      56 ifOutOctets(8), 64/68/72 ifOutUcast/Mcast/Bcast
    """
    in_pkts = _u32(sample, off + 32) + _u32(sample, off + 36) + _u32(sample, off + 40)
    out_pkts = _u32(sample, off + 64) + _u32(sample, off + 68) + _u32(sample, off + 72)

    return CounterRecord(
        if_index=_u32(sample, off),
        in_octets=_u64(sample, off + 24),
        out_octets=_u64(sample, off + 56),
        in_packets=in_pkts,
        out_packets=out_pkts,
    )


def _decode_flow_sample(sample: bytes) -> Optional[FlowRecord]:
    """
    flow_sample:
      seq(4), source_id(4), sampling_rate(4), sample_pool(4),
      drops(4), input(4), output(4), record_count(4), records...

    raw packet header record:
      header_protocol(4), frame_length(4), stripped(4), header_length(4), header_bytes...

    Each raw packet header adds its frame length. A sample too short to
    hold the fixed header contributes nothing.
    """
    if len(sample) < FLOW_SAMPLE_HEADER_LEN:
        return None

    sampling_rate = _u32(sample, 8)
    end = len(sample)
    off = FLOW_SAMPLE_HEADER_LEN
    frame_length = 0

    while off + 8 <= end:
        record_format = _u32(sample, off) & _FORMAT_MASK
        record_len = _u32(sample, off + 4)
        off += 8

        if off + record_len > end:
            break

        if record_format == RECORD_RAW_PACKET_HEADER and record_len >= 8:
            frame_length += _u32(sample, off + 4)

        off += record_len

    return FlowRecord(sampling_rate=sampling_rate, frame_length=frame_length)
