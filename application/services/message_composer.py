# application/services/message_composer.py
from __future__ import annotations
import secrets
from email.message import EmailMessage

from domain.models import MonitorMessage

BODY_TEXT = "This is an automated message.\n"
TOKEN_DIGITS = 12


def _random_digits(length: int) -> str:
    return "".join(str(secrets.randbelow(10)) for _ in range(length))


def make_subject_tag(digits: str) -> str:
    """
    Dos números hex a partir de un solo sorteo: los dígitos y los mismos dígitos
    invertidos (los ceros a la izquierda desaparecen al pasar a entero).
    """
    return f"{int(digits):x}{int(digits[::-1]):x}"


def compose_test_message(recipient: str, program_name: str, *, digits: int = TOKEN_DIGITS) -> MonitorMessage:
    if digits < 10:
        raise ValueError("digits must be >= 10")
    tag = make_subject_tag(_random_digits(digits))
    return MonitorMessage(
        recipient=recipient,
        subject=f"{program_name} test email {tag}",
        body=BODY_TEXT,
        content_type="text/plain",
    )


def render_message(message: MonitorMessage, sender: str | None = None) -> bytes:
    msg = EmailMessage()
    if sender:
        msg["From"] = sender
    msg["To"] = message.recipient
    msg["Subject"] = message.subject
    _, subtype = message.content_type.split("/", 1)
    msg.set_content(message.body, subtype=subtype)
    return msg.as_bytes()
