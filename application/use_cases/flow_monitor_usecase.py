# application/use_cases/flow_monitor_usecase.py
from __future__ import annotations
import logging
import time
from typing import Callable

from application.services.message_composer import compose_test_message
from application.services.subject_finder import Finder
from domain.models import RunResult, MonitorMessage

logger = logging.getLogger(__name__)


class FlowMonitor:
    """
    Prueba de flujo de correo extremo a extremo:
    conectar IMAP -> enviar -> sondear hasta encontrar el asunto -> borrar -> desconectar.

    El envío se hace sólo después de conectar, autenticar y seleccionar la
    carpeta, para no mandar un correo que luego nadie vigila.
    """

    def __init__(
        self,
        *,
        mailbox_factory: Callable[[], object],
        sender: Callable[[MonitorMessage], None],
        finder: Finder,
        recipient: str,
        program_name: str,
        user: str,
        password: str,
        folder: str,
        max_time_to_try: int = 30,
        retry_frequency: int = 5,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.mailbox_factory = mailbox_factory
        self.sender = sender
        self.finder = finder
        self.recipient = recipient
        self.program_name = program_name
        self.user = user
        self.password = password
        self.folder = folder
        self.max_time_to_try = max_time_to_try
        self.retry_frequency = retry_frequency
        self.sleep = sleep or time.sleep

    def run(self) -> RunResult:
        message = compose_test_message(self.recipient, self.program_name)

        with self.mailbox_factory() as mailbox:
            mailbox.connect()
            mailbox.login(self.user, self.password)
            count = mailbox.select(self.folder)
            logger.debug("Carpeta %s con %d mensajes", self.folder, count)

            self.sender(message)
            logger.info("Test email sent: %s", message.subject)

            time_left = self.max_time_to_try
            attempts = 0
            found_id: int | None = None
            # Se descuenta antes de dormir: intentos = nº de restos positivos
            while True:
                time_left -= self.retry_frequency
                if time_left <= 0:
                    break
                self.sleep(self.retry_frequency)
                attempts += 1
                outcome = self.finder(mailbox, message.subject)
                if outcome.found:
                    mailbox.delete(outcome.message_id)
                    found_id = outcome.message_id
                    break
            # el __exit__ del buzón hace CLOSE (expunge) + LOGOUT

        if found_id is not None:
            elapsed = self.max_time_to_try - time_left
            logger.info("Test was successful in %d seconds.", elapsed)
            return RunResult(success=True, elapsed=elapsed, attempts=attempts,
                             subject=message.subject, message_id=found_id)

        logger.debug("Sin coincidencias tras %d intentos", attempts)
        return RunResult(success=False, elapsed=self.max_time_to_try, attempts=attempts,
                         subject=message.subject)
