"""
WebSocket event models for Menteur rooms; the FastAPI app lives in ``ws.server``.
"""

from .events import EventType, OutboundEventType, parse_inbound_event

__all__ = ["EventType", "OutboundEventType", "parse_inbound_event"]
