"""External service integrations."""

from boardsync.integrations.backend_service import (
    BackendConfig,
    BackendTransport,
    build_new_game_payload,
    build_state_payload,
    get_config,
    post_json,
)
from boardsync.integrations.channel import WebSocketChannel

__all__ = [
    "BackendConfig",
    "BackendTransport",
    "WebSocketChannel",
    "build_new_game_payload",
    "build_state_payload",
    "get_config",
    "post_json",
]
