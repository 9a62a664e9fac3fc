#
# SPDX-License-Identifier: AGPL-3.0-only
# Copyright (c) 2026 m2-eng
# Author: m2-eng
# Co-Author: GitHub Copilot
# License: GNU Affero General Public License v3.0 (AGPL-3.0-only)
# Purpose: Central configuration access.
#
"""
Central configuration access helpers.

Values come from cfg/config.yaml; a few secrets and deployment switches can
be overridden through the environment (a .env file is honoured).
"""

import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from sulabh_session.utils import load_config


DEFAULT_CONFIG_PATH = "cfg/config.yaml"


def get_config(config_path: str = DEFAULT_CONFIG_PATH) -> dict[str, Any]:
    return load_config(config_path=config_path)


def get_config_section(
    section: str | None = None,
    config_path: str = DEFAULT_CONFIG_PATH,
) -> dict[str, Any]:
    if section:
        return load_config(config_path=config_path, subconfig=section)
    return load_config(config_path=config_path)


@dataclass(frozen=True)
class AuthSettings:
    """Session and login policy."""
    jwt_secret: str
    environment: str = "development"
    cookie_name: str = "sulabh.sid"
    short_session_seconds: int = 5 * 60
    long_session_days: int = 30
    max_login_attempts: int = 5
    lockout_minutes: int = 15
    bcrypt_rounds: int = 12
    cleanup_interval_seconds: int = 300
    cors_origins: tuple[str, ...] = ("http://localhost:3000",)

    @property
    def short_session_ttl(self) -> timedelta:
        return timedelta(seconds=self.short_session_seconds)

    @property
    def long_session_ttl(self) -> timedelta:
        return timedelta(days=self.long_session_days)

    @property
    def secure_cookies(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_dict(cls, auth_config: dict[str, Any]) -> "AuthSettings":
        secret = os.getenv("SULABH_JWT_SECRET") or auth_config.get("jwt_secret")
        if not secret:
            raise ValueError("auth.jwt_secret is required (or set SULABH_JWT_SECRET)")
        return cls(
            jwt_secret=secret,
            environment=os.getenv("SULABH_ENV") or auth_config.get("environment", "development"),
            cookie_name=auth_config.get("cookie_name", "sulabh.sid"),
            short_session_seconds=int(auth_config.get("short_session_seconds", 5 * 60)),
            long_session_days=int(auth_config.get("long_session_days", 30)),
            max_login_attempts=int(auth_config.get("max_login_attempts", 5)),
            lockout_minutes=int(auth_config.get("lockout_minutes", 15)),
            bcrypt_rounds=int(auth_config.get("bcrypt_rounds", 12)),
            cleanup_interval_seconds=int(auth_config.get("cleanup_interval_seconds", 300)),
            cors_origins=tuple(auth_config.get("cors_origins") or ("http://localhost:3000",)),
        )


@dataclass(frozen=True)
class DatabaseSettings:
    """Account store backend. 'memory' keeps everything in process."""
    backend: str = "memory"
    host: str = "localhost"
    port: int = 3306
    user: str = ""
    password: str = field(default="", repr=False)
    name: str = "sulabh"
    pool_size: int = 5

    @classmethod
    def from_dict(cls, db_config: dict[str, Any]) -> "DatabaseSettings":
        backend = os.getenv("SULABH_DB_BACKEND") or db_config.get("backend", "memory")
        if backend not in ("memory", "mysql"):
            raise ValueError(f"Unsupported database backend: {backend}")
        return cls(
            backend=backend,
            host=db_config.get("host", "localhost"),
            port=int(db_config.get("port", 3306)),
            user=db_config.get("user", ""),
            password=os.getenv("SULABH_DB_PASSWORD") or db_config.get("password", ""),
            name=db_config.get("name", "sulabh"),
            pool_size=int(db_config.get("pool_size", 5)),
        )


@dataclass(frozen=True)
class Settings:
    auth: AuthSettings
    database: DatabaseSettings


def load_settings(config_path: str = DEFAULT_CONFIG_PATH) -> Settings:
    """Build typed settings from the YAML file and the environment."""
    load_dotenv()
    config = get_config(config_path) if Path(config_path).exists() else {}
    return Settings(
        auth=AuthSettings.from_dict(config.get("auth") or {}),
        database=DatabaseSettings.from_dict(config.get("database") or {}),
    )
