from __future__ import annotations

from .models import RateSnapshot, Severity

CRITICAL_RATIO = 1.0
ABNORMAL_RATIO = 0.7
WARNING_RATIO = 0.5


def usage_ratio(rates: RateSnapshot, pps_threshold: float, mbps_threshold: float) -> float:
    """
    Highest of pps and mbps relative to their thresholds. A threshold of 0 counts as 0.
    """
    pps_ratio = rates.pps / pps_threshold if pps_threshold > 0 else 0.0
    mbps_ratio = rates.mbps / mbps_threshold if mbps_threshold > 0 else 0.0
    return max(pps_ratio, mbps_ratio)


def classify(rates: RateSnapshot, pps_threshold: float, mbps_threshold: float) -> Severity:
    usage = usage_ratio(rates, pps_threshold, mbps_threshold)
    if usage >= CRITICAL_RATIO:
        return Severity.CRITICAL
    if usage >= ABNORMAL_RATIO:
        return Severity.ABNORMAL
    if usage >= WARNING_RATIO:
        return Severity.WARNING
    return Severity.OK
