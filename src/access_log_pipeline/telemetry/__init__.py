"""Delivery of sampled events to the telemetry backend."""

from .sender import EventSender, HoneycombSender, event_to_batch_item

__all__ = [
    "EventSender",
    "HoneycombSender",
    "event_to_batch_item",
]
