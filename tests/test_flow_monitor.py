import pytest

from application.services.subject_finder import find_by_crawl, find_by_search
from application.use_cases.flow_monitor_usecase import FlowMonitor
from domain.errors import DeleteError, FolderError, SendError
from tests.fakes.fake_mailbox import FakeMailbox


def _monitor(mailbox, *, deadline, every, finder=find_by_search, sender=None, sleeps=None):
    sleeps = sleeps if sleeps is not None else []
    return FlowMonitor(
        mailbox_factory=lambda: mailbox,
        sender=sender or (lambda msg: mailbox.events.append("send")),
        finder=finder,
        recipient="monitor@example.com",
        program_name="email-flowmon",
        user="u",
        password="p",
        folder="INBOX",
        max_time_to_try=deadline,
        retry_frequency=every,
        sleep=sleeps.append,
    )


@pytest.mark.parametrize("deadline,every,attempts", [(10, 5, 1), (11, 5, 2), (5, 5, 0), (15, 5, 2), (20, 5, 3), (3, 5, 0)])
def test_attempt_count_boundaries(deadline, every, attempts):
    mb = FakeMailbox()
    sleeps = []
    result = _monitor(mb, deadline=deadline, every=every, sleeps=sleeps).run()
    assert not result.success
    assert result.attempts == attempts
    assert mb.searches == attempts
    assert sleeps == [every] * attempts
    assert mb.deleted == []
    assert mb.disconnected


@pytest.mark.parametrize("k", [1, 2, 4])
def test_match_at_attempt_k(k):
    mb = FakeMailbox(search_results=[[]] * (k - 1) + [[42]])
    result = _monitor(mb, deadline=30, every=5).run()
    assert result.success
    assert result.attempts == k
    assert result.elapsed == k * 5
    assert result.message_id == 42
    assert mb.deleted == [42]
    assert mb.selects == k + 1


def test_select_before_every_attempt():
    mb = FakeMailbox()
    result = _monitor(mb, deadline=30, every=5).run()
    assert result.attempts == 5
    assert mb.selects == result.attempts + 1
    assert mb.events[-11:] == ["select", "search"] * 5 + ["disconnect"]


def test_mailbox_is_ready_before_sending():
    mb = FakeMailbox(search_results=[[1]])
    _monitor(mb, deadline=10, every=5).run()
    assert mb.events[:4] == ["connect", "login", "select", "send"]
    assert mb.events[-2:] == ["delete", "disconnect"]


def test_ambiguous_hits_keep_polling():
    mb = FakeMailbox(search_results=[[5, 6], [7]])
    result = _monitor(mb, deadline=30, every=5).run()
    assert result.success
    assert result.attempts == 2
    assert mb.deleted == [7]


def test_crawl_finds_the_sent_subject():
    mb = FakeMailbox(headers=[(1, True, "unrelated")])
    sent = []

    def sender(msg):
        sent.append(msg)
        mb.headers.append((2, False, msg.subject))

    result = _monitor(mb, deadline=10, every=5, finder=find_by_crawl, sender=sender).run()
    assert result.success
    assert result.subject == sent[0].subject
    assert mb.deleted == [2]


def test_send_error_still_disconnects():
    mb = FakeMailbox()

    def sender(msg):
        raise SendError("Failed to send test email")

    with pytest.raises(SendError):
        _monitor(mb, deadline=10, every=5, sender=sender).run()
    assert mb.disconnected
    assert mb.searches == 0


def test_folder_error_prevents_send():
    class BadFolder(FakeMailbox):
        def select(self, folder=None):
            raise FolderError("IMAP select folder failed")

    mb = BadFolder()
    with pytest.raises(FolderError):
        _monitor(mb, deadline=10, every=5).run()
    assert "send" not in mb.events
    assert mb.disconnected


def test_delete_error_fails_the_run():
    class NoDelete(FakeMailbox):
        def delete(self, uid):
            raise DeleteError("Failed to delete my test message")

    mb = NoDelete(search_results=[[3]])
    with pytest.raises(DeleteError):
        _monitor(mb, deadline=10, every=5).run()
    assert mb.disconnected
