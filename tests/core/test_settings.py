"""Tests for ``treebind.core.settings``: BinderSettings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from treebind.core.settings import BinderSettings


class TestDefaults:
    def test_defaults(self, monkeypatch):
        for key in (
            "TREEBIND_STACK_CHECK",
            "TREEBIND_IGNORE_MISSING_PROPERTIES",
            "TREEBIND_MATCH_CACHE",
            "TREEBIND_LOG_LEVEL",
            "TREEBIND_LOG_FORMAT",
        ):
            monkeypatch.delenv(key, raising=False)
        settings = BinderSettings(_env_file=None)
        assert settings.stack_check == "warn"
        assert settings.ignore_missing_properties is False
        assert settings.match_cache is True
        assert settings.namespace_aware is True
        assert settings.log_level == "WARNING"
        assert settings.log_format == "console"


class TestEnvironment:
    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("TREEBIND_STACK_CHECK", "strict")
        monkeypatch.setenv("TREEBIND_IGNORE_MISSING_PROPERTIES", "true")
        settings = BinderSettings(_env_file=None)
        assert settings.stack_check == "strict"
        assert settings.ignore_missing_properties is True

    def test_explicit_value_beats_env(self, monkeypatch):
        monkeypatch.setenv("TREEBIND_STACK_CHECK", "strict")
        assert BinderSettings(stack_check="off", _env_file=None).stack_check == "off"


class TestValidation:
    def test_rejects_unknown_stack_check(self):
        with pytest.raises(ValidationError):
            BinderSettings(stack_check="sometimes", _env_file=None)

    def test_rejects_unknown_log_format(self):
        with pytest.raises(ValidationError):
            BinderSettings(log_format="xml", _env_file=None)
