# -*- coding: utf-8 -*-
"""
Event Types Module

Re-exports EventType from core.event_bus for front ends (CLI, UI) so they
subscribe through the facade without importing the core layer.

Usage Example:
    from app.events import EventType

    facade.subscribe(EventType.TRACK_ENDED, on_track_ended)
    facade.subscribe(EventType.SESSION_EXPIRED, on_signed_out)
"""

from core.event_bus import EventType

__all__ = ["EventType"]
