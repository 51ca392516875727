"""Self-update loop: release -> self-update trigger -> resolve -> install -> PR -> merge.

Each stage runs as its own short-lived CI job; this module holds the rules the
stages share so they can be checked in one place. The cycle terminates because
the release stage ignores any merge whose commit message starts with
RESERVED_COMMIT_PREFIX, and every self-update PR is committed with that prefix.
"""

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

from .exceptions import LoopStateError
from .resolver import CANONICAL_VENDOR_KEY
from .resolver import resolve_vendor
from .schema import VendorRegistry

logger = logging.getLogger(__name__)

RESERVED_COMMIT_PREFIX = "chore(vendored):"


class LoopStage(str, Enum):
    """Stages of one self-update cycle."""

    MERGED = "merged"
    RELEASED = "released"
    SELF_UPDATE_TRIGGERED = "self_update_triggered"
    VENDOR_RESOLVED = "vendor_resolved"
    INSTALL_PR_PENDING = "install_pr_pending"
    IDLE = "idle"


def self_update_commit_message(version: str, vendor: str = CANONICAL_VENDOR_KEY) -> str:
    """Commit message for a self-update PR, tagged so it never triggers a release."""
    return f"{RESERVED_COMMIT_PREFIX} update {vendor} to v{version.removeprefix('v')}"


def is_self_update_commit(message: str) -> bool:
    return message.lstrip().startswith(RESERVED_COMMIT_PREFIX)


def should_release(message: str) -> bool:
    """Release-stage gate: every merge releases except tagged self-update commits."""
    return not is_self_update_commit(message)


class SelfUpdateLoop:
    """
    State machine for one consumer's self-update cycle.

    Pure bookkeeping: callers report events, the loop decides the next stage and
    records the path taken. Illegal transitions raise LoopStateError.

    Example:
        >>> loop = SelfUpdateLoop()
        >>> loop.merged("fix: handle empty config")
        <LoopStage.RELEASED: 'released'>
        >>> loop.released(succeeded=True)
        <LoopStage.SELF_UPDATE_TRIGGERED: 'self_update_triggered'>
    """

    def __init__(self) -> None:
        self.stage = LoopStage.IDLE
        self.history: list[LoopStage] = [LoopStage.IDLE]
        self.vendor_key: str | None = None

    def _move(self, stage: LoopStage) -> LoopStage:
        logger.debug(f"Self-update loop: {self.stage.value} -> {stage.value}")
        self.stage = stage
        self.history.append(stage)
        return stage

    def _expect(self, *stages: LoopStage) -> None:
        if self.stage not in stages:
            allowed = ", ".join(s.value for s in stages)
            raise LoopStateError(
                f"Illegal transition from {self.stage.value} (expected one of: {allowed})",
                context={"stage": self.stage.value},
            )

    def merged(self, message: str) -> LoopStage:
        """A commit merged; tagged self-update commits end the cycle here."""
        self._expect(LoopStage.IDLE, LoopStage.INSTALL_PR_PENDING)
        self._move(LoopStage.MERGED)
        if not should_release(message):
            logger.info("Self-update commit merged, not releasing")
            return self._move(LoopStage.IDLE)
        return self._move(LoopStage.RELEASED)

    def released(self, succeeded: bool) -> LoopStage:
        """Release job finished; only a successful release triggers the self-update."""
        self._expect(LoopStage.RELEASED)
        if not succeeded:
            return self._move(LoopStage.IDLE)
        return self._move(LoopStage.SELF_UPDATE_TRIGGERED)

    def resolve(self, registry: VendorRegistry | Mapping[str, Any] | None) -> LoopStage:
        """Look ourselves up in the registry; an unregistered consumer goes idle quietly."""
        self._expect(LoopStage.SELF_UPDATE_TRIGGERED)
        self.vendor_key = resolve_vendor(registry)
        if self.vendor_key is None:
            logger.info("git-dogfood is not registered, nothing to update")
            return self._move(LoopStage.IDLE)
        return self._move(LoopStage.VENDOR_RESOLVED)

    def install_pr_opened(self, version: str) -> str:
        """The install job opened its PR; returns the commit message it must carry."""
        self._expect(LoopStage.VENDOR_RESOLVED)
        self._move(LoopStage.INSTALL_PR_PENDING)
        return self_update_commit_message(version, vendor=self.vendor_key or CANONICAL_VENDOR_KEY)
