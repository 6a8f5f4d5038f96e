"""Configuration loading for promptroute.

Settings live in ~/.promptroute/config.yaml (or $PROMPTROUTE_HOME), the
API key in ~/.promptroute/.credentials. Environment variables win over
both files, explicit arguments win over everything.

Example config.yaml:

    selector_model: openai/gpt-oss-20b:free
    embedding_model: text-embedding-3-small
    semantic_enabled: true
    catalog_ttl_seconds: 604800
    allowed_providers: [openai, anthropic]
    blocked_providers: []
    analytics:
      enabled: false
"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from promptroute.errors import ConfigurationError

API_KEY_ENV = "OPEN_ROUTER_API_KEY"
SELECTOR_MODEL_ENV = "MODEL_SELECTOR_MODEL"
HOME_ENV = "PROMPTROUTE_HOME"

DEFAULT_SELECTOR_MODEL = "openai/gpt-oss-20b:free"
DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"
DEFAULT_CATALOG_URL = "https://openrouter.ai/api/v1/models"
DEFAULT_CATALOG_TTL = 7 * 24 * 60 * 60  # 1 week


@dataclass
class AnalyticsConfig:
    """Telemetry settings. Off unless explicitly enabled."""
    enabled: bool = False
    endpoint: str = ""
    api_key: str = ""
    collect_prompt_metrics: bool = True
    collect_model_performance: bool = True
    collect_semantic_features: bool = True
    collect_system_info: bool = False
    batch_size: int = 50
    batch_interval_seconds: float = 5.0
    debug: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "AnalyticsConfig":
        return cls(**_known_fields(cls, data or {}))


@dataclass
class RouterConfig:
    """Everything PromptRouter needs to talk to the outside world."""
    api_key: str = ""
    selector_model: str = DEFAULT_SELECTOR_MODEL
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    semantic_enabled: bool = True
    catalog_url: str = DEFAULT_CATALOG_URL
    catalog_ttl_seconds: float = DEFAULT_CATALOG_TTL
    request_timeout: float = 30.0
    decision_timeout: float = 30.0
    allowed_providers: list[str] = field(default_factory=list)
    blocked_providers: list[str] = field(default_factory=list)
    log_level: str = "WARNING"
    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)

    def validate(self) -> None:
        """Raise ConfigurationError if the config cannot be used."""
        if not self.api_key or not self.api_key.strip():
            raise ConfigurationError(
                f"Missing API key. Set {API_KEY_ENV} or run "
                "`promptroute config --set-key`.")
        if not self.selector_model:
            raise ConfigurationError("selector_model must not be empty")
        if self.catalog_ttl_seconds <= 0:
            raise ConfigurationError("catalog_ttl_seconds must be positive")
        if self.request_timeout <= 0 or self.decision_timeout <= 0:
            raise ConfigurationError("timeouts must be positive")
        overlap = set(self.allowed_providers) & set(self.blocked_providers)
        if overlap:
            raise ConfigurationError(
                f"Providers both allowed and blocked: {sorted(overlap)}")
        if self.analytics.enabled and not self.analytics.endpoint:
            raise ConfigurationError(
                "analytics.enabled requires analytics.endpoint")

    def to_dict(self) -> dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["analytics"] = {
            f.name: getattr(self.analytics, f.name) for f in fields(self.analytics)
        }
        return data


def _known_fields(cls: type, data: dict[str, Any]) -> dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


def get_config_dir() -> Path:
    """Get the promptroute config directory."""
    override = os.environ.get(HOME_ENV)
    config_dir = Path(override) if override else Path.home() / ".promptroute"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    return get_config_dir() / "config.yaml"


def get_credentials_path() -> Path:
    return get_config_dir() / ".credentials"


def load_config() -> dict[str, Any]:
    """Load the raw config file (empty dict if absent)."""
    config_path = get_config_path()
    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"{config_path} must contain a mapping")
        return data
    return {}


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to file."""
    config_path = get_config_path()
    with open(config_path, "w") as f:
        yaml.dump(config, f, default_flow_style=False)


def save_credential(api_key: str) -> None:
    """Save the API key to the credentials file (owner-only permissions)."""
    creds_path = get_credentials_path()

    creds = {}
    if creds_path.exists():
        with open(creds_path) as f:
            creds = yaml.safe_load(f) or {}

    creds["openrouter"] = api_key

    # Created owner-only; an existing file is tightened before the key lands
    fd = os.open(creds_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    creds_path.chmod(0o600)
    with os.fdopen(fd, "w") as f:
        yaml.dump(creds, f, default_flow_style=False)


def load_credential() -> str | None:
    """Load the API key: environment first, then credentials file."""
    env_value = os.environ.get(API_KEY_ENV)
    if env_value:
        return env_value

    creds_path = get_credentials_path()
    if creds_path.exists():
        with open(creds_path) as f:
            creds = yaml.safe_load(f) or {}
            return creds.get("openrouter")

    return None


def load_router_config(**overrides: Any) -> RouterConfig:
    """Build a RouterConfig from file, env and explicit overrides.

    The result is not validated; PromptRouter.initialize() does that so a
    bad key surfaces at initialization time.
    """
    data = load_config()
    data = _known_fields(RouterConfig, data)
    analytics = AnalyticsConfig.from_dict(data.pop("analytics", None))

    config = RouterConfig(**data, analytics=analytics)
    config.api_key = load_credential() or ""

    selector_env = os.environ.get(SELECTOR_MODEL_ENV)
    if selector_env:
        config.selector_model = selector_env

    for key, value in overrides.items():
        if value is None:
            continue
        if not hasattr(config, key):
            raise ConfigurationError(f"Unknown config option: {key}")
        setattr(config, key, value)

    return config
