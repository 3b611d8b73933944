"""
Confirmation gates placed in front of costly or destructive batches
"""
import logging
from typing import Protocol

import click


logger = logging.getLogger(__name__)


class Confirmer(Protocol):
    def confirm(self, question: str) -> bool: ...


class ClickConfirmer:
    """Asks the operator on the terminal"""

    def confirm(self, question: str) -> bool:
        answer = click.confirm(question, default=False)
        if not answer:
            logger.info("Operator declined: %s", question)
        return answer


class AlwaysConfirm:
    """Headless gate used by --yes and tests"""

    def confirm(self, question: str) -> bool:
        logger.debug("Auto-confirmed: %s", question)
        return True


class AlwaysDeny:
    def confirm(self, question: str) -> bool:
        return False
