"""
Configuration management for the storefront assistant.

Loads settings from a YAML config file and applies environment overrides.
"""
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

load_dotenv()


def _project_root() -> Path:
    """Return project root (parent of storefront package)."""
    return Path(__file__).resolve().parent.parent


DEFAULT_CONFIG_PATH = _project_root() / "config" / "default.yaml"

# env var -> config field
_ENV_OVERRIDES = {
    "DATABASE_URL": "database_url",
    "OPENAI_MODEL": "openai_model",
    "OPENAI_TEMPERATURE": "temperature",
    "OPENAI_MAX_TOKENS": "max_tokens",
    "OPENAI_TIMEOUT": "model_timeout_seconds",
    "ASSISTANT_MAX_TOOL_ROUNDS": "max_tool_rounds",
    "ASSISTANT_HISTORY_LIMIT": "history_limit",
    "ASSISTANT_PRODUCT_LIMIT": "product_result_limit",
    "ASSISTANT_REQUEST_TIMEOUT": "request_timeout_seconds",
    "LOG_LEVEL": "log_level",
}


@dataclass
class AssistantConfig:
    """Configuration for the shopping assistant and its server."""

    # Storage
    database_url: str = "sqlite:///./storefront.db"

    # Model configuration
    openai_model: str = "gpt-4o-mini"
    temperature: float = 0.7
    max_tokens: int = 500
    model_timeout_seconds: float = 15.0

    # Orchestration bounds
    max_tool_rounds: int = 5            # tool-calling rounds per request
    history_limit: int = 10             # most recent history messages kept
    product_result_limit: int = 20      # rows returned by filter_products
    request_timeout_seconds: float = 30.0

    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AssistantConfig":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def apply_env(self, environ: Optional[Dict[str, str]] = None) -> "AssistantConfig":
        """Override fields from environment variables, coercing to the field type."""
        environ = os.environ if environ is None else environ
        types = {f.name: f.type for f in fields(self)}
        for env_name, field_name in _ENV_OVERRIDES.items():
            raw = environ.get(env_name)
            if raw is None or raw == "":
                continue
            field_type = types[field_name]
            if field_type in (int, "int"):
                value: Any = int(raw)
            elif field_type in (float, "float"):
                value = float(raw)
            else:
                value = raw
            setattr(self, field_name, value)
        return self


def load_config(path: Optional[Path] = None, environ: Optional[Dict[str, str]] = None) -> AssistantConfig:
    """
    Load configuration from YAML, then apply environment overrides.

    A missing file is not an error: defaults are used.
    """
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    data: Dict[str, Any] = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    return AssistantConfig.from_dict(data).apply_env(environ)


_config: Optional[AssistantConfig] = None


def get_config() -> AssistantConfig:
    """Return the process-wide config, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config
