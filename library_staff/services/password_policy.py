"""
Password strength policy and the breached-password check.

The breach check uses the Pwned Passwords range API (k-anonymity): only the
first five hex characters of the SHA-1 digest leave the process. Any
transport or HTTP failure fails open with a warning so an outage of the
third-party service never blocks a password change.
"""

from __future__ import annotations

import hashlib
import logging
import re

import httpx

from library_staff.core.config import settings
from library_staff.domain.ports import BreachChecker

logger = logging.getLogger(__name__)

MIN_LENGTH = 12

_RULES = (
    ("uppercase", re.compile(r"[A-Z]")),
    ("lowercase", re.compile(r"[a-z]")),
    ("digit", re.compile(r"[0-9]")),
    ("symbol", re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?`~]")),
)


def policy_violations(password: str) -> list[str]:
    """Return the name of every rule ``password`` breaks; empty when it passes."""
    violations = []
    if len(password) < MIN_LENGTH:
        violations.append("min_length")
    for name, pattern in _RULES:
        if not pattern.search(password):
            violations.append(name)
    return violations


# ── Breach list ─────────────────────────────────────────────────────
class PwnedPasswordsChecker(BreachChecker):
    def __init__(
        self,
        base_url: str = settings.BREACH_CHECK_URL,
        timeout: float = settings.BREACH_CHECK_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport

    async def is_compromised(self, password: str) -> bool:
        digest = hashlib.sha1(password.encode("utf-8")).hexdigest().upper()
        prefix, suffix = digest[:5], digest[5:]
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.get(
                    f"{self._base_url}{prefix}", headers={"Add-Padding": "true"}
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Breached-password check skipped: %s", exc)
            return False

        for line in response.text.splitlines():
            hash_suffix, _, count = line.strip().partition(":")
            # Padding entries carry a zero count.
            if hash_suffix.upper() == suffix and count.strip() != "0":
                return True
        return False


class DisabledBreachChecker(BreachChecker):
    """Used when ``BREACH_CHECK_ENABLED`` is off (tests, air-gapped installs)."""

    async def is_compromised(self, password: str) -> bool:
        return False


def build_breach_checker() -> BreachChecker:
    if settings.BREACH_CHECK_ENABLED:
        return PwnedPasswordsChecker()
    return DisabledBreachChecker()
