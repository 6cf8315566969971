# application/services/sendmail_runner.py
from __future__ import annotations
import logging
import subprocess

from domain.errors import SendError

logger = logging.getLogger(__name__)


def send_message(payload: bytes, cmd_parts: list[str], timeout: int = 60) -> None:
    """
    Entrega el mensaje completo al MTA local por stdin (estilo sendmail -t).
    Cualquier fallo es fatal: no se reintenta el envío.
    """
    try:
        proc = subprocess.Popen(
            cmd_parts,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except OSError as exc:
        raise SendError(f"Failed to send test email: cannot run {cmd_parts[0]}: {exc}") from exc

    try:
        out, err = proc.communicate(input=payload, timeout=timeout if timeout and timeout > 0 else None)
    except subprocess.TimeoutExpired as exc:
        proc.kill()
        proc.communicate()
        raise SendError(f"Failed to send test email: {cmd_parts[0]} timed out after {timeout}s") from exc

    if proc.returncode != 0:
        detail = (err or out).decode("utf-8", errors="replace").strip()
        raise SendError(
            f"Failed to send test email: {cmd_parts[0]} exited with code {proc.returncode}"
            + (f": {detail}" if detail else "")
        )
    logger.debug("MTA OK: %s", out.decode("utf-8", errors="replace").strip())
