from __future__ import annotations

import math
from typing import List, Sequence

from .models import Severity
from .monitor import MonitorView

GRAPH_HEIGHT = 10

_COLORS = {
    Severity.OK: "\x1b[32m",
    Severity.WARNING: "\x1b[33m",
    Severity.ABNORMAL: "\x1b[35m",
    Severity.CRITICAL: "\x1b[31m",
}
_RESET = "\x1b[0m"
_CLEAR = "\x1b[2J\x1b[H"


def colorize(text: str, severity: Severity) -> str:
    return _COLORS.get(severity, "") + text + _RESET


def render_graph(series: Sequence[float], height: int, width: int, title: str, threshold: float) -> str:
    """
    Bar graph of the last width snapshots, newest on the right.

    One column is one accepted snapshot, not a fixed time step, so the
    x axis counts snapshots back from the newest.

    The y scale is the larger of the threshold and the series peak,
    so the graph grows when traffic goes past the threshold.
    Missing older values are drawn as zero.
    """
    max_val = max([threshold, 1.0, *series])
    padded: List[float] = [0.0] * max(0, width - len(series)) + list(series)[-width:]

    out = [f"\n{title} (last {width} samples)"]
    for row in range(height - 1, -1, -1):
        y_val = ((row + 1) / height) * max_val
        line = f"{y_val:7.1f} |"
        for val in padded:
            bar = math.ceil((val / max_val) * height)
            line += "█" if bar > row else " "
        out.append(line)

    out.append(" " * 8 + "+" + "-" * width)

    left, mid, right = str(width), str(width // 2), "0"
    base = " " * 9 + left + " " * max(0, width - len(left) - len(right))
    mid_pos = 9 + (width - len(mid)) // 2
    labels = base[:mid_pos] + mid + base[mid_pos + len(mid) :] + right
    out.append(labels)
    return "\n".join(out)


def render_screen(view: MonitorView, clear: bool = True) -> str:
    status = view.severity.value
    lines = [
        "====================================",
        "  sFlow Traffic Monitor and Trigger",
        "====================================",
        f"Interface: {view.interface}" + (f" (ifIndex {view.if_index})" if view.if_index is not None else ""),
        f"Current: {view.rates.pps:.0f} PPS | {view.rates.mbps:.2f} Mbps",
        "Status : " + colorize(status, view.severity) + (" (no data)" if view.stale else "") + "\n",
        render_graph(view.pps_history, GRAPH_HEIGHT, view.window, "PPS", view.pps_threshold),
        render_graph(view.mbps_history, GRAPH_HEIGHT, view.window, "Mbps", view.mbps_threshold),
        "\nPress Ctrl+C to exit",
    ]
    text = "\n".join(lines)
    return (_CLEAR + text) if clear else text
