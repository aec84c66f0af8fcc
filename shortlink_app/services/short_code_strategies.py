"""
Short code generation strategies for URL shortener.
Uses Strategy Pattern so stores don't care how codes are produced.
"""

import base64
import re
import secrets
from abc import ABC, abstractmethod

from shortlink_app.exceptions import InvalidAlias


ALIAS_PATTERN = re.compile(r"[A-Za-z0-9]+")
ALIAS_MIN_LENGTH = 3
ALIAS_MAX_LENGTH = 20


class ShortCodeStrategy(ABC):
    """Abstract base class for short code generation strategies"""

    @abstractmethod
    def generate(self) -> str:
        """
        Generate a candidate short code.

        Uniqueness is NOT guaranteed here - the store checks the candidate
        against existing codes and asks for another one on collision.
        """
        pass


class SecureRandomShortCodeStrategy(ShortCodeStrategy):
    """
    Random codes drawn from a cryptographically secure source.

    6 random bytes encode to exactly 8 URL-safe base64 characters
    (A-Z, a-z, 0-9, '-', '_'), giving 2^48 possible codes.

    Pros: Unpredictable, stateless, no DB round trip to generate
    Cons: Collisions are possible (negligible at small scale), so the
          store must keep an existence-check loop
    """

    def __init__(self, num_bytes: int = 6, length: int = 8):
        self.num_bytes = num_bytes
        self.length = length

    def generate(self) -> str:
        raw = secrets.token_bytes(self.num_bytes)
        code = base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
        return code[:self.length]


def is_valid_alias(alias: str) -> bool:
    """Alias must be 3-20 characters, letters and digits only"""
    return (
        ALIAS_MIN_LENGTH <= len(alias) <= ALIAS_MAX_LENGTH
        and ALIAS_PATTERN.fullmatch(alias) is not None
    )


def validate_alias(alias: str) -> None:
    """Raise InvalidAlias unless the alias is well formed"""
    if not is_valid_alias(alias):
        raise InvalidAlias()
