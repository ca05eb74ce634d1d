"""Unit tests for core/config.py -- the SECRET_KEY startup policy.

Settings is constructed directly with keyword arguments, which take
precedence over the DEBUG=true that conftest.py puts in the environment.
"""

import pytest
from pydantic import ValidationError

from core.config import Settings


class TestSecretKeyPolicy:
    def test_production_without_key_refuses_to_start(self) -> None:
        with pytest.raises(ValidationError, match="SECRET_KEY is required"):
            Settings(debug=False, secret_key="")

    def test_debug_without_key_generates_one(self) -> None:
        settings = Settings(debug=True, secret_key="")
        assert len(settings.secret_key) >= 32

    def test_generated_keys_differ(self) -> None:
        assert Settings(debug=True, secret_key="").secret_key != Settings(debug=True, secret_key="").secret_key

    @pytest.mark.parametrize("debug", [True, False])
    def test_short_key_rejected(self, debug: bool) -> None:
        with pytest.raises(ValidationError, match="at least 32 characters"):
            Settings(debug=debug, secret_key="too-short")

    def test_explicit_key_kept(self) -> None:
        key = "k" * 40
        assert Settings(debug=False, secret_key=key).secret_key == key

    def test_non_positive_expiry_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Settings(debug=False, secret_key="k" * 40, token_expire_seconds=0)


class TestDefaults:
    def test_token_lifetime_is_24_hours(self) -> None:
        assert Settings(debug=False, secret_key="k" * 40).token_expire_seconds == 24 * 3600
