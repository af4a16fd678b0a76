from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Admin API
    admin_host: str = os.getenv("CADDYHOOK_ADMIN_HOST", "caddy")
    admin_port: int = _env_int("CADDYHOOK_ADMIN_PORT", 2019)
    server: str = os.getenv("CADDYHOOK_SERVER", "srv0")
    timeout_s: int = _env_int("CADDYHOOK_TIMEOUT_S", 10)
    # Resolve admin_host through this DNS server instead of the system resolver.
    dns_server: str | None = os.getenv("CADDYHOOK_DNS_SERVER") or None

    # Reconciliation
    # 0 disables the retry loop.
    retry_minutes: int = _env_int("CADDYHOOK_RETRY_MINUTES", 0)
    private: bool = _env_bool("CADDYHOOK_PRIVATE", False)

    # Hook input
    annotation: str = os.getenv("CADDYHOOK_ANNOTATION", "reverse-proxy")

    log_level: str = os.getenv("CADDYHOOK_LOG_LEVEL", "INFO")

    @property
    def admin_url(self) -> str:
        return f"http://{self.admin_host}:{int(self.admin_port)}"

    @property
    def retry_interval_s(self) -> float:
        return max(0, self.retry_minutes) * 60.0


settings = Settings()
