"""Dialogue engine for an appliance repair dispatcher's phone and text lines."""

__version__ = "0.1.0"
