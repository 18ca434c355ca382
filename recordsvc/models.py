from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Record:
    name: str = ""
    age: int = 0


@dataclass
class APIError:
    """Error body returned to clients as ``{"message": ...}``."""

    message: str = ""


__all__ = ["APIError", "Record"]
