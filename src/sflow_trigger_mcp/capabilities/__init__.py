"""
Collector capabilities.

Each capability exposes a build_capability factory in its capability module.
"""

__all__ = [
    "sflow_udp",
]
