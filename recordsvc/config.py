from __future__ import annotations

import os
import pathlib
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}


def _load_dotenv_if_present(env_path: pathlib.Path | None = None) -> None:
    # simple KEY=VALUE lines; real environment variables win
    env_path = env_path or pathlib.Path(__file__).parent / ".env"
    if not env_path.exists():
        return
    for line in env_path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" in line:
            k, v = line.split("=", 1)
            os.environ.setdefault(k.strip(), v.strip())


@dataclass
class ServiceConfig:
    host: str
    port: int
    log_level: str
    seed: bool


def _coerce_port(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"invalid port number: {raw}") from exc
    if value < 0 or value > 65535:
        raise ValueError(f"invalid port number: {raw}")
    return value


def load_config() -> ServiceConfig:
    _load_dotenv_if_present()
    host = os.environ.get("RECORDS_HOST", "0.0.0.0")
    port = _coerce_port(os.environ.get("RECORDS_PORT", "4444"))
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    seed = os.environ.get("RECORDS_SEED", "true").strip().lower() in _TRUTHY
    return ServiceConfig(host=host, port=port, log_level=log_level, seed=seed)


__all__ = ["ServiceConfig", "load_config"]
