"""Data models: serialized output records and domain dataclasses."""
