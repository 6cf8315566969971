# interface_adapters/controllers/flowmon_controller.py
from __future__ import annotations
import logging

from config.settings import Settings
from application.services.message_composer import render_message
from application.services.sendmail_runner import send_message
from application.services.subject_finder import finder_for
from application.use_cases.flow_monitor_usecase import FlowMonitor
from domain.models import RunResult, MonitorMessage
from infrastructure.email.imap_client import IMAPMailbox

logger = logging.getLogger(__name__)


class FlowMonController:
    def __init__(self, settings: Settings, program_name: str) -> None:
        self.settings = settings
        imap = settings.imap
        cons = settings.constraints
        self.uc = FlowMonitor(
            mailbox_factory=self._new_mailbox,
            sender=self._send,
            finder=finder_for(imap.find_type),
            recipient=settings.test_address,
            program_name=program_name,
            user=imap.user,
            password=imap.password,
            folder=imap.folder,
            max_time_to_try=cons.max_time_to_try,
            retry_frequency=cons.retry_frequency,
        )

    def _new_mailbox(self) -> IMAPMailbox:
        imap = self.settings.imap
        return IMAPMailbox(imap.host, imap.port, ssl=imap.ssl, tls_verify=imap.tls_verify)

    def _send(self, message: MonitorMessage) -> None:
        st = self.settings
        send_message(
            render_message(message, sender=st.from_address),
            st.sendmail_cmd_parts(),
            timeout=st.constraints.send_timeout,
        )

    def timeout_message(self) -> str:
        return (
            f"The test email to {self.settings.test_address} did not appear on the IMAP server "
            f"within {self.settings.constraints.max_time_to_try} seconds."
        )

    def run_once(self) -> RunResult:
        st = self.settings
        logger.debug("IMAP host=%s folder=%s find_type=%s", st.imap.host, st.imap.folder, st.imap.find_type.value)
        return self.uc.run()
