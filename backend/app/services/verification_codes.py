"""In-memory registry of short-lived codes that link a web user to a Telegram chat.

Codes live only in this process; a restart drops every pending code.
"""

from __future__ import annotations

import logging
import random
import secrets
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass


logger = logging.getLogger(__name__)

CODE_LENGTH = 6
_LOWEST = 10 ** (CODE_LENGTH - 1)
_HIGHEST = 10**CODE_LENGTH - 1


@dataclass(frozen=True)
class PendingCode:
    usuario_id: int
    created_at: float
    expires_at: float


class VerificationCodeRegistry:
    def __init__(
        self,
        ttl_seconds: float = 600,
        clock: Callable[[], float] = time.monotonic,
        rng: random.Random | None = None,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._rng = rng or secrets.SystemRandom()
        self._codes: dict[str, PendingCode] = {}
        self._lock = threading.Lock()

    def issue(self, usuario_id: int) -> str:
        """Create a fresh code for ``usuario_id``.

        Earlier codes of the same user stay redeemable until they expire.
        """
        with self._lock:
            now = self._clock()
            self._drop_expired(now)
            if len(self._codes) > _HIGHEST - _LOWEST:
                raise RuntimeError("No quedan códigos de verificación disponibles")
            code = self._draw()
            while code in self._codes:
                code = self._draw()
            self._codes[code] = PendingCode(usuario_id, now, now + self.ttl_seconds)
        logger.info("Código de verificación emitido para usuario %s", usuario_id)
        return code

    def redeem(self, code: str) -> int | None:
        """Consume ``code``; returns the owning user id, or None when unknown or expired."""
        with self._lock:
            entry = self._codes.pop(code, None)
            if entry is None:
                return None
            if entry.expires_at <= self._clock():
                logger.info("Código de verificación expirado para usuario %s", entry.usuario_id)
                return None
        logger.info("Código de verificación canjeado por usuario %s", entry.usuario_id)
        return entry.usuario_id

    def sweep(self) -> int:
        with self._lock:
            removed = self._drop_expired(self._clock())
        if removed:
            logger.debug("Eliminados %s códigos de verificación expirados", removed)
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._codes)

    def __contains__(self, code: str) -> bool:
        with self._lock:
            entry = self._codes.get(code)
            return entry is not None and entry.expires_at > self._clock()

    def _draw(self) -> str:
        return str(self._rng.randint(_LOWEST, _HIGHEST))

    def _drop_expired(self, now: float) -> int:
        expired = [code for code, entry in self._codes.items() if entry.expires_at <= now]
        for code in expired:
            del self._codes[code]
        return len(expired)
