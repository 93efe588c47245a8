"""Setup-completion routing gate.

Role is checked first: only the provisioning role (or an anonymous visitor,
who may be about to provision) is ever sent to the setup wizard.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..core.constants import (
    DEFAULT_SETUP_CHECK_DELAY_SECONDS,
    DEFAULT_SETUP_CHECK_RETRIES,
    HOME_ROUTE,
    SETUP_ROUTE,
    SETUP_ROUTES,
)
from ..core.enums import Role
from ..core.exceptions import StoreError
from ..settings.repository import SystemSettingsRepository

logger = logging.getLogger(__name__)


class GateAction(str, Enum):
    RENDER = "render"
    REDIRECT = "redirect"
    PENDING = "pending"


@dataclass(frozen=True)
class GateDecision:
    action: GateAction
    location: Optional[str] = None

    @classmethod
    def render(cls) -> "GateDecision":
        return cls(GateAction.RENDER)

    @classmethod
    def redirect(cls, location: str) -> "GateDecision":
        return cls(GateAction.REDIRECT, location)

    @classmethod
    def pending(cls) -> "GateDecision":
        """Role or completion status could not be resolved yet."""
        return cls(GateAction.PENDING)


class SetupGate:
    def __init__(
        self,
        settings: SystemSettingsRepository,
        *,
        retries: int = DEFAULT_SETUP_CHECK_RETRIES,
        delay_seconds: float = DEFAULT_SETUP_CHECK_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._settings = settings
        self._retries = max(1, int(retries))
        self._delay = float(delay_seconds)
        self._sleep = sleep

    def check_completed(self) -> bool:
        """Read the completion flag, retrying transient store errors.

        "No row" and "relation missing" mean not completed and are not
        retried. Attempt ``n`` waits ``delay * n`` before the next one.
        """
        for attempt in range(1, self._retries + 1):
            try:
                return self._settings.fetch_setup_flag()
            except StoreError as e:
                if e.is_missing:
                    return False
                if attempt < self._retries:
                    logger.warning("Setup check attempt %d failed, retrying: %s", attempt, e.message)
                    self._sleep(self._delay * attempt)
                    continue
                logger.error("Error checking setup status: %s", e.message)
        return False

    def decide(self, role: Optional[Role], path: str) -> GateDecision:
        if role is not None and role != Role.SUPER_ADMIN:
            return GateDecision.render()

        completed = self.check_completed()
        on_setup_page = path in SETUP_ROUTES
        if not completed and not on_setup_page:
            return GateDecision.redirect(SETUP_ROUTE)
        if completed and on_setup_page:
            return GateDecision.redirect(HOME_ROUTE)
        return GateDecision.render()
