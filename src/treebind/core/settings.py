"""Settings for the binder and the dispatch engine.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.
    Settings are a plain object handed to the engine and the binder, never
    a module-level singleton, so two binders in one process can be
    configured differently.

    - **Pydantic validation:** Type-checked at construction
    - **Environment-driven:** Reads ``TREEBIND_*`` env vars and .env files
    - **Sensible defaults:** Strict property mapping, warn on stack imbalance

Examples:
    >>> from treebind.core.settings import BinderSettings
    >>> BinderSettings(stack_check="strict").stack_check
    'strict'

Tags:
    settings, configuration, pydantic, environment, treebind
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

StackCheck = Literal["off", "warn", "strict"]


class BinderSettings(BaseSettings):
    """Settings shared by ``Binder`` and ``DispatchEngine``.

    Fields
    ──────
    log_level                 : Structlog log level
    log_format                : "console" or "json"
    stack_check               : Object-stack balance check after each ``end``
    ignore_missing_properties : Skip (rather than fail on) unmapped properties
    namespace_aware           : Ask the SAX parser for namespace events
    match_cache               : Cache pattern matches per distinct path
    """

    model_config = SettingsConfigDict(
        env_prefix="TREEBIND_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "WARNING"
    log_format: Literal["console", "json"] = "console"

    # ── Dispatch ─────────────────────────────────────────────────
    stack_check: StackCheck = Field(
        default="warn",
        description="What to do when a rule leaves the object stack unbalanced",
    )
    match_cache: bool = True

    # ── Actions ──────────────────────────────────────────────────
    ignore_missing_properties: bool = Field(
        default=False,
        description="Permissive attribute->property mapping when True",
    )

    # ── Parser ───────────────────────────────────────────────────
    namespace_aware: bool = True
