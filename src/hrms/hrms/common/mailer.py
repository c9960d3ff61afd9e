from __future__ import annotations

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Mailer(Protocol):
    def send(self, *, to: str, subject: str, body: str) -> bool:
        raise NotImplementedError


class LogMailer(Mailer):
    """Console backend: writes outgoing mail to the log instead of SMTP."""

    def send(self, *, to: str, subject: str, body: str) -> bool:
        logger.info("[Email console] TO: %s", to)
        logger.info("[Email console] SUBJECT: %s", subject)
        logger.info("[Email console] BODY:\n%s", body)
        return True
