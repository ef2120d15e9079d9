"""Core components for record framing."""

from tfstream.core import record

__all__ = ["record"]
