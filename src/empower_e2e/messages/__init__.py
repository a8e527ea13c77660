"""Protobuf message types for decoding transaction responses."""

from empower_e2e.messages.envelope import decode_response
from empower_e2e.messages.registry import get_message_class

__all__ = ["decode_response", "get_message_class"]
