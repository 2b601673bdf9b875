"""Narrative analytics for long-form serialized fiction."""

__version__ = "0.1.0"
