from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller extracted from a validated JWT.

    `user_email` is the token subject and the identity the permission
    resolver keys licenses on.
    """

    user_email: str
