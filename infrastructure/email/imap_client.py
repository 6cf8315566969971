# infrastructure/email/imap_client.py
from __future__ import annotations
import logging
import socket
import ssl
from enum import Enum
from typing import Iterator

from imapclient import IMAPClient
from imapclient.exceptions import IMAPClientError, LoginError
import pyzmail

from domain.errors import (
    AuthError,
    ConnectError,
    DeleteError,
    FolderError,
    MailboxError,
    MailboxStateError,
)

logger = logging.getLogger(__name__)

HEADER_ITEM = b"BODY[HEADER]"


class SessionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    AUTHENTICATED = "authenticated"
    SELECTED = "selected"
    CLOSED = "closed"


class IMAPMailbox:
    """
    Sesión IMAP de una ejecución, modelada como máquina de estados:

        disconnected -> connected -> authenticated -> selected -> closed

    Cada operación exige su estado. La carpeta debe volver a seleccionarse antes
    de cada búsqueda/recorrido: sin el SELECT el servidor sólo muestra la foto
    de la carpeta tomada en el SELECT anterior.
    """

    def __init__(
        self,
        host: str,
        port: int = 993,
        ssl: bool = True,
        tls_verify: bool = True,
        timeout: float | None = 30,
    ) -> None:
        self.host = host
        self.port = port
        self.ssl = ssl
        self.tls_verify = tls_verify
        self.timeout = timeout
        self.client: IMAPClient | None = None
        self.state = SessionState.DISCONNECTED
        self.current_folder: str | None = None

    def __enter__(self) -> "IMAPMailbox":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()

    def _require(self, *states: SessionState) -> IMAPClient | None:
        # sin conexión no hay cliente; en el resto de estados es obligatorio
        needs_client = SessionState.DISCONNECTED not in states
        if self.state not in states or (needs_client and self.client is None):
            wanted = "/".join(s.value for s in states)
            raise MailboxStateError(f"IMAP operation needs state {wanted}, session is {self.state.value}")
        return self.client

    def _ssl_context(self) -> ssl.SSLContext:
        ctx = ssl.create_default_context()
        if not self.tls_verify:
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
        return ctx

    # ───────── estados ─────────
    def connect(self) -> None:
        self._require(SessionState.DISCONNECTED)
        try:
            self.client = IMAPClient(
                self.host,
                port=self.port,
                ssl=self.ssl,
                ssl_context=self._ssl_context() if self.ssl else None,
                timeout=self.timeout,
            )
        except (socket.error, ssl.SSLError, IMAPClientError) as exc:
            raise ConnectError(f"Unable to connect to IMAP {self.host}:{self.port}: {exc}") from exc
        self.state = SessionState.CONNECTED
        logger.info("Conectado a IMAP %s:%s", self.host, self.port)

    def login(self, user: str, password: str) -> None:
        client = self._require(SessionState.CONNECTED)
        try:
            client.login(user, password)
        except (LoginError, IMAPClientError) as exc:
            raise AuthError(f"IMAP login failed: {exc}") from exc
        except socket.error as exc:
            raise ConnectError(f"IMAP login failed, connection lost: {exc}") from exc
        self.state = SessionState.AUTHENTICATED

    def select(self, folder: str | None = None) -> int:
        """SELECT de `folder` (o de la carpeta actual). Devuelve el nº de mensajes."""
        client = self._require(SessionState.AUTHENTICATED, SessionState.SELECTED)
        target = folder or self.current_folder
        if not target:
            raise MailboxStateError("No IMAP folder to re-select")
        try:
            info = client.select_folder(target, readonly=False)
        except (IMAPClientError, socket.error) as exc:
            raise FolderError(f"IMAP select folder {target!r} failed: {exc}") from exc
        self.current_folder = target
        self.state = SessionState.SELECTED
        return int(info.get(b"EXISTS", 0))

    # ───────── consultas ─────────
    def search_subject(self, subject: str) -> list[int]:
        client = self._require(SessionState.SELECTED)
        try:
            return sorted(client.search(["SUBJECT", subject]))
        except (IMAPClientError, socket.error) as exc:
            raise MailboxError(f"IMAP search failed: {exc}") from exc

    def iter_headers(self) -> Iterator[tuple[int, bool, str]]:
        """Recorre la carpeta del más antiguo al más nuevo: (uid, visto, asunto)."""
        client = self._require(SessionState.SELECTED)
        try:
            uids = sorted(client.search(["ALL"]))
        except (IMAPClientError, socket.error) as exc:
            raise MailboxError(f"IMAP search failed: {exc}") from exc

        for uid in uids:
            try:
                resp = client.fetch([uid], ["FLAGS", "BODY.PEEK[HEADER]"])
            except (IMAPClientError, socket.error) as exc:
                raise MailboxError(f"IMAP fetch of UID={uid} failed: {exc}") from exc
            data = resp.get(uid)
            if not data:
                # expurgado entre el SEARCH y el FETCH
                continue
            seen = b"\\Seen" in (data.get(b"FLAGS") or ())
            msg = pyzmail.PyzMessage.factory(data.get(HEADER_ITEM) or b"")
            yield uid, seen, msg.get_subject() or ""

    def delete(self, uid: int) -> None:
        client = self._require(SessionState.SELECTED)
        try:
            client.delete_messages([uid])
        except (IMAPClientError, socket.error) as exc:
            raise DeleteError(f"Failed to delete my test message UID={uid}: {exc}") from exc
        logger.info("Marcado para borrar UID=%s", uid)

    # ───────── cierre ─────────
    def disconnect(self) -> None:
        """CLOSE (aplica los borrados pendientes) + LOGOUT. Nunca lanza."""
        if self.client is None or self.state in (SessionState.DISCONNECTED, SessionState.CLOSED):
            return
        client, was_selected = self.client, self.state is SessionState.SELECTED
        self.state = SessionState.CLOSED
        self.client = None
        if was_selected:
            try:
                client.close_folder()
            except Exception:
                logger.exception("Error en CLOSE de %s", self.current_folder)
        try:
            client.logout()
        except Exception:
            logger.exception("Error cerrando IMAP")
