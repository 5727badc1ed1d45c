"""
Single-entry guard for ledger mutators (imperative shell).

A ledger calls out to its custodian while an operation is in progress; a
custodian (or an asset hook behind it) may call straight back into the ledger.
`ReentrancyGuard.enter()` marks the operation as in progress before any
external call and clears the mark on every exit path, so a nested mutator
fails immediately with `ReentrantCall` instead of executing.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from ..core.vesting.errors import ReentrantCall

logger = logging.getLogger("vesting.integration.reentrancy")


class ReentrancyGuard:
    def __init__(self) -> None:
        self._active: Optional[str] = None

    @property
    def entered(self) -> bool:
        return self._active is not None

    @property
    def active_operation(self) -> Optional[str]:
        return self._active

    @contextmanager
    def enter(self, operation: str) -> Iterator[None]:
        if self._active is not None:
            logger.warning("Rejected re-entrant %s while %s is in progress", operation, self._active)
            raise ReentrantCall(f"{operation} called while {self._active} is in progress")
        self._active = operation
        logger.debug("Entered %s", operation)
        try:
            yield
        finally:
            self._active = None
            logger.debug("Left %s", operation)
