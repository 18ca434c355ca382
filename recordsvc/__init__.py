from .config import ServiceConfig, load_config
from .handlers import build_handler
from .models import APIError, Record

__all__ = [
    "APIError",
    "Record",
    "ServiceConfig",
    "build_handler",
    "load_config",
]
