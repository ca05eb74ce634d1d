"""
auth/errors.py -- Exceptions raised by the credential and token layer.

The route layer translates these into HTTP responses. Keeping them free of
FastAPI lets tokens.py and passwords.py stay usable from the CLI.
"""


class AuthError(Exception):
    """Base class for authentication failures."""


class CorruptCredentialError(AuthError):
    """A stored password hash is missing or not in the expected argon2 format.

    This is a data-integrity problem on our side, not a wrong password, and is
    reported under its own error code.
    """

    def __init__(self, account_id: int | None, reason: str) -> None:
        super().__init__(f"Corrupt credential for account {account_id}: {reason}")
        self.account_id = account_id
        self.reason = reason


class TokenSigningError(AuthError):
    """No signing secret is available, so no token can be issued."""
