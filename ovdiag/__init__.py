"""Vehicle diagnostic data model: ECU definitions, parameter decoding, a binary reader and session helpers."""

__version__ = "0.1.0"