import argparse
import socket
import struct
import time


def counter_datagram(seq: int, if_index: int, in_octets: int, in_pkts: int) -> bytes:
    # generic interface counters, 88 bytes
    if_counters = struct.pack(
        "!IIQIIQIIIIIIQIIIIII",
        if_index, 6, 10_000_000_000, 1, 3,
        in_octets, in_pkts, 0, 0, 0, 0, 0,
        in_octets // 2, in_pkts // 2, 0, 0, 0, 0, 0,
    )
    record = struct.pack("!II", 1, len(if_counters)) + if_counters
    sample = struct.pack("!III", seq, if_index, 1) + record

    dgram = struct.pack("!III", 5, 1, (127 << 24) | 1)
    dgram += struct.pack("!IIII", 0, seq, seq * 1000, 1)
    dgram += struct.pack("!II", 2, len(sample)) + sample
    return dgram


def main():
    parser = argparse.ArgumentParser(description="Send synthetic sFlow counter samples.")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=6343)
    parser.add_argument("--pps", type=int, default=50_000)
    parser.add_argument("--mbps", type=float, default=400.0)
    parser.add_argument("--count", type=int, default=120)
    args = parser.parse_args()

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    octets = 0
    pkts = 0

    for seq in range(1, args.count + 1):
        sock.sendto(counter_datagram(seq, 2, octets, pkts), (args.host, args.port))
        octets += int(args.mbps * 1_000_000 / 8)
        pkts += args.pps
        time.sleep(1.0)


if __name__ == "__main__":
    main()
