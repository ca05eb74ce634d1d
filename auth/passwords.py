"""
auth/passwords.py -- argon2 password hashing and the new-password policy.

Hashing: argon2-cffi PasswordHasher with library defaults (argon2id). The
encoded hash is self-describing -- "$argon2id$v=19$m=...,t=...,p=...$salt$hash"
-- so stored values carry their own algorithm tag and parameters.

Verification policy:
  - A stored hash that is None or does not start with "$argon2" is never
    passed to the verifier. check_stored_hash() raises CorruptCredentialError
    so callers can report it separately from a wrong password.
  - A hash with the right tag that argon2 still cannot parse fails closed
    with the same CorruptCredentialError.
  - A well-formed hash that does not match returns False.

Policy: each rule is a separate predicate so a rejected password reports every
missing character class, not just the first one found.

Layer rule: no imports from api/, registry/, or notify/.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

from auth.errors import CorruptCredentialError

HASH_PREFIX = "$argon2"

_hasher = PasswordHasher()


def hash_password(plain: str) -> str:
    """Return an encoded argon2id hash of the given plaintext password."""
    if not plain:
        raise ValueError("Cannot hash an empty password.")
    return _hasher.hash(plain)


def check_stored_hash(hashed: str | None, account_id: int | None = None) -> str:
    """Return hashed unchanged if it carries the argon2 tag, else raise."""
    if hashed is None:
        raise CorruptCredentialError(account_id, "password hash is null")
    if not hashed.startswith(HASH_PREFIX):
        raise CorruptCredentialError(account_id, "password hash has an unexpected algorithm tag")
    return hashed


def verify_password(hashed: str | None, plain: str, account_id: int | None = None) -> bool:
    """Return True only if plain matches the stored argon2 hash.

    Raises CorruptCredentialError for a null, foreign or unparseable hash.
    """
    check_stored_hash(hashed, account_id)
    try:
        return _hasher.verify(hashed, plain)
    except VerifyMismatchError:
        return False
    except (InvalidHashError, VerificationError) as exc:
        raise CorruptCredentialError(account_id, "password hash could not be parsed") from exc


# ---------------------------------------------------------------------------
# New-password policy
# ---------------------------------------------------------------------------

MIN_PASSWORD_LENGTH = 8


@dataclass(frozen=True)
class PasswordRule:
    name: str
    message: str
    check: Callable[[str], bool]


def _matches(pattern: str) -> Callable[[str], bool]:
    compiled = re.compile(pattern)
    return lambda value: compiled.search(value) is not None


PASSWORD_RULES: tuple[PasswordRule, ...] = (
    PasswordRule(
        "min_length",
        f"New password must be at least {MIN_PASSWORD_LENGTH} characters",
        lambda value: len(value) >= MIN_PASSWORD_LENGTH,
    ),
    PasswordRule("uppercase", "New password must contain at least one uppercase letter", _matches(r"[A-Z]")),
    PasswordRule("lowercase", "New password must contain at least one lowercase letter", _matches(r"[a-z]")),
    PasswordRule("digit", "New password must contain at least one number", _matches(r"[0-9]")),
    # "_" is a word character, so an underscore alone does not satisfy this rule.
    PasswordRule("symbol", "New password must contain at least one special character", _matches(r"\W")),
)


def check_password_policy(password: str, rules: tuple[PasswordRule, ...] = PASSWORD_RULES) -> list[PasswordRule]:
    """Return every rule the password fails. An empty list means it passes."""
    return [rule for rule in rules if not rule.check(password)]
