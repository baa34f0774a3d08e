from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


DEFAULT_MAX_STEPS = 100
DEFAULT_CALL_TIMEOUT_SECONDS = 30.0
DEFAULT_HTTP_TIMEOUT_SECONDS = 20.0


@dataclass(slots=True)
class AppSettings:
    max_steps: int = DEFAULT_MAX_STEPS
    call_timeout_seconds: float = DEFAULT_CALL_TIMEOUT_SECONDS
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS
    gate_on_validation: bool = False
    block_private_hosts: bool = True
    log_level: str = "INFO"



def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default



def _get_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default



def load_settings() -> AppSettings:
    load_dotenv()

    return AppSettings(
        max_steps=max(1, _get_int("FORMFLOW_MAX_STEPS", DEFAULT_MAX_STEPS)),
        call_timeout_seconds=_get_float("FORMFLOW_CALL_TIMEOUT_SECONDS", DEFAULT_CALL_TIMEOUT_SECONDS),
        http_timeout_seconds=_get_float("FORMFLOW_HTTP_TIMEOUT_SECONDS", DEFAULT_HTTP_TIMEOUT_SECONDS),
        gate_on_validation=_get_bool("FORMFLOW_GATE_ON_VALIDATION", False),
        block_private_hosts=_get_bool("FORMFLOW_BLOCK_PRIVATE_HOSTS", True),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
