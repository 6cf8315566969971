# domain/models.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class FindType(str, Enum):
    SEARCH = "search"   # búsqueda SUBJECT en el servidor
    CRAWL = "crawl"     # recorrido de cabeceras en cliente


@dataclass(frozen=True)
class MonitorMessage:
    recipient: str
    subject: str
    body: str
    content_type: str = "text/plain"


@dataclass(frozen=True)
class PollOutcome:
    found: bool
    message_id: int | None = None
    candidates: int = 0


@dataclass(frozen=True)
class RunResult:
    success: bool
    elapsed: int
    attempts: int
    subject: str
    message_id: int | None = None
