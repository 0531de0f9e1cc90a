"""Public runtime configuration handed to the browser.

The dashboard learns the streaming gateway address at runtime instead of at
build time. The value is built once per process and reused; a failed build
is not cached, so the next caller retries. Restart is the only refresh.
"""

import threading
from dataclasses import dataclass
from typing import Any

from app.core.config import Settings, settings


@dataclass(frozen=True)
class RuntimeConfig:
    """Browser-visible endpoints.

    Attributes:
        ws_url: WebSocket gateway for live transcripts.
        api_url: Public REST API base URL.
    """

    ws_url: str
    api_url: str

    def to_public_dict(self) -> dict[str, str]:
        """Serialize with the camelCase keys the frontend expects."""
        return {"wsUrl": self.ws_url, "apiUrl": self.api_url}


def derive_ws_url(api_url: str) -> str:
    """Convert an HTTP(S) API URL into the matching ``/ws`` WebSocket URL."""
    if api_url.startswith("https://"):
        ws_url = "wss://" + api_url[len("https://") :]
    elif api_url.startswith("http://"):
        ws_url = "ws://" + api_url[len("http://") :]
    else:
        ws_url = api_url
    if ws_url.endswith("/ws"):
        return ws_url
    return f"{ws_url.rstrip('/')}/ws"


def build_runtime_config(config: Settings) -> RuntimeConfig:
    """Compute the public config from settings."""
    api_url = config.vexa_api_url or config.public_vexa_api_url or config.resolved_vexa_api_url
    ws_url = config.public_vexa_ws_url or derive_ws_url(api_url)
    return RuntimeConfig(ws_url=ws_url, api_url=config.public_vexa_api_url or api_url)


_runtime_config: RuntimeConfig | None = None
_lock = threading.Lock()


def get_runtime_config(config: Settings | None = None) -> RuntimeConfig:
    """Get or build the process-wide runtime config.

    Readers after the first successful build never take the lock.
    """
    global _runtime_config

    cached = _runtime_config
    if cached is not None:
        return cached

    with _lock:
        if _runtime_config is None:
            _runtime_config = build_runtime_config(config or settings)
        return _runtime_config


def reset_runtime_config() -> None:
    """Drop the cached value (tests only)."""
    global _runtime_config
    with _lock:
        _runtime_config = None


def ai_feature_flags(config: Settings | None = None) -> dict[str, Any]:
    """Describe the AI assistant setup without exposing its key.

    AI_MODEL is ``provider/model``; the model part may itself contain
    slashes. Anything else leaves the assistant disabled.
    """
    config = config or settings
    provider, _, model = config.ai_model.partition("/")
    if not provider or not model:
        return {"enabled": False, "provider": None, "model": None}
    return {
        "enabled": True,
        "provider": provider.lower(),
        "model": model,
        "hasApiKey": bool(config.ai_api_key.get_secret_value()),
        "hasBaseUrl": bool(config.ai_base_url),
    }
