import re

import pytest

from application.services.message_composer import (
    BODY_TEXT,
    compose_test_message,
    make_subject_tag,
    render_message,
)
from domain.models import MonitorMessage


def test_subject_tag_is_hex_of_digits_and_reversed_digits():
    # 123456789 -> 0x75bcd15 ; 9876543210 -> 0x24cb016ea
    assert make_subject_tag("0123456789") == "75bcd1524cb016ea"


def test_compose_builds_plain_text_message():
    msg = compose_test_message("monitor@example.com", "email-flowmon")
    assert isinstance(msg, MonitorMessage)
    assert msg.recipient == "monitor@example.com"
    assert re.fullmatch(r"email-flowmon test email [0-9a-f]+", msg.subject)
    assert msg.body == BODY_TEXT
    assert msg.content_type == "text/plain"


def test_subjects_do_not_repeat():
    subjects = {compose_test_message("a@b.c", "prog").subject for _ in range(10_000)}
    assert len(subjects) == 10_000


def test_rejects_short_tokens():
    with pytest.raises(ValueError):
        compose_test_message("a@b.c", "prog", digits=9)


def test_render_message_headers():
    msg = compose_test_message("monitor@example.com", "prog")
    raw = render_message(msg, sender="flowmon@example.com").decode()
    assert "To: monitor@example.com" in raw
    assert "From: flowmon@example.com" in raw
    assert f"Subject: {msg.subject}" in raw
    assert "Content-Type: text/plain" in raw
    assert "This is an automated message." in raw


def test_render_message_without_sender_has_no_from():
    raw = render_message(compose_test_message("x@y.z", "prog")).decode()
    assert "From:" not in raw
