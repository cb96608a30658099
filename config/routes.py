"""LLM route configuration."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, Field

from .settings import Settings


class LlmRoute(BaseModel):
    """LLM endpoint configuration."""

    name: str
    base_url: str
    endpoint: str
    model: str
    timeout_s: float = Field(ge=0.1)
    max_retries: int = Field(default=1, ge=0)
    api_key_env: Optional[str] = None
    extra_headers: Dict[str, str] = Field(default_factory=dict)
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    sequential: bool = False


class AppConfig(BaseModel):
    """Configuration file root."""

    llm_routes: Dict[str, LlmRoute]
    default_route: str


def load_config(path: Path) -> AppConfig:
    """Load configuration from disk."""

    data = path.read_text(encoding="utf-8")
    return AppConfig.model_validate_json(data)


def route_from_settings(cfg: Settings) -> LlmRoute:
    """Build the default route from environment settings."""

    return LlmRoute(
        name="default",
        base_url=cfg.LLM_BASE_URL,
        endpoint=cfg.LLM_ENDPOINT,
        model=cfg.LLM_MODEL,
        timeout_s=cfg.LLM_TIMEOUT_S,
        max_retries=cfg.LLM_MAX_RETRIES,
        api_key_env=cfg.LLM_API_KEY_ENV,
        temperature=cfg.LLM_TEMPERATURE,
        max_tokens=cfg.LLM_MAX_TOKENS,
    )


def resolve_route(cfg: Settings) -> LlmRoute:
    """Pick the configured route, preferring the JSON config file when set."""

    if cfg.LLM_CONFIG_PATH:
        app_cfg = load_config(Path(cfg.LLM_CONFIG_PATH))
        if app_cfg.default_route not in app_cfg.llm_routes:
            raise KeyError(f"Route '{app_cfg.default_route}' missing from {cfg.LLM_CONFIG_PATH}")
        return app_cfg.llm_routes[app_cfg.default_route]
    return route_from_settings(cfg)
