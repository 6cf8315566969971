# domain/errors.py
from __future__ import annotations


class FlowMonError(Exception):
    """Error fatal de una ejecución: se informa por stderr y se sale con código != 0."""


class ConfigError(FlowMonError):
    pass


class SendError(FlowMonError):
    pass


class MailboxError(FlowMonError):
    pass


class ConnectError(MailboxError):
    pass


class AuthError(MailboxError):
    pass


class FolderError(MailboxError):
    pass


class DeleteError(MailboxError):
    pass


class MailboxStateError(MailboxError):
    """Operación IMAP invocada en un estado de sesión que no la admite."""
