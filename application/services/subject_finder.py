# application/services/subject_finder.py
from __future__ import annotations
import logging
from typing import Callable, Protocol

from domain.models import FindType, PollOutcome

logger = logging.getLogger(__name__)


class SubjectMailbox(Protocol):
    def select(self, folder: str | None = None) -> int: ...
    def search_subject(self, subject: str) -> list[int]: ...
    def iter_headers(self): ...


Finder = Callable[[SubjectMailbox, str], PollOutcome]


def find_by_search(mailbox: SubjectMailbox, subject: str) -> PollOutcome:
    """SEARCH SUBJECT en el servidor. Sólo un resultado cuenta como coincidencia."""
    mailbox.select()
    ids = mailbox.search_subject(subject)
    logger.info("IMAP search found: %d", len(ids))
    if len(ids) == 1:
        return PollOutcome(found=True, message_id=ids[0], candidates=1)
    return PollOutcome(found=False, candidates=len(ids))


def find_by_crawl(mailbox: SubjectMailbox, subject: str) -> PollOutcome:
    """
    Recorre todas las cabeceras (más antiguo -> más nuevo) comparando el asunto
    exacto. Más lento que SEARCH, pero no depende de la búsqueda del servidor.
    """
    mailbox.select()
    scanned = 0
    for pos, (uid, seen, msg_subject) in enumerate(mailbox.iter_headers(), 1):
        scanned = pos
        logger.info("%s [%03d] %s", "*" if seen else " ", pos, msg_subject)
        if msg_subject == subject:
            return PollOutcome(found=True, message_id=uid, candidates=scanned)
    return PollOutcome(found=False, candidates=scanned)


_FINDERS: dict[FindType, Finder] = {
    FindType.SEARCH: find_by_search,
    FindType.CRAWL: find_by_crawl,
}


def finder_for(find_type: FindType | str) -> Finder:
    return _FINDERS[FindType(find_type)]
