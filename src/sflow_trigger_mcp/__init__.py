"""
sflow_trigger_mcp

sFlow rate monitor with threshold triggers, exposed as a console app or MCP server.

Core ideas
1. The sflow_udp capability decodes datagrams into counter and flow records
2. Core turns records into smoothed pps and mbps for one tracked interface
3. Core classifies load and runs handler scripts on status transitions
"""

__all__ = ["core", "capabilities", "cli"]
