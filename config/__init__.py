"""Configuration package for the interview service."""
from .registry import COMPLETION_KEY, bind_model, get_model, is_bound
from .routes import AppConfig, LlmRoute, load_config, resolve_route, route_from_settings
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "load_config",
    "resolve_route",
    "route_from_settings",
    "COMPLETION_KEY",
    "bind_model",
    "get_model",
    "is_bound",
    "Settings",
    "settings",
]
