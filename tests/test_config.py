"""Unit tests for core/config.py -- SECRET_KEY policy and defaults."""

import pytest

from core.config import Settings

_KEY = "k" * 32


def test_production_requires_secret_key():
    with pytest.raises(ValueError, match="SECRET_KEY is required"):
        Settings(debug=False, secret_key="")


def test_short_secret_key_rejected():
    with pytest.raises(ValueError, match="at least 32 characters"):
        Settings(debug=False, secret_key="short")


def test_debug_generates_secret_key():
    settings = Settings(debug=True, secret_key="")
    assert len(settings.secret_key) >= 32


def test_defaults():
    settings = Settings(debug=False, secret_key=_KEY, api_prefix="/api", empty_list_not_found=True)
    assert settings.min_password_length == 6
    assert settings.empty_list_not_found is True
    assert settings.api_prefix == "/api"


def test_trailing_slash_stripped_from_prefix():
    assert Settings(secret_key=_KEY, api_prefix="/api/").api_prefix == "/api"
