"""
Event system for the pitboss engine.

This package provides the event bus that transitions publish to.
"""

from pitboss.events.emitter import EngineEventType, EventBus, EventEmitter

__all__ = ["EngineEventType", "EventBus", "EventEmitter"]
