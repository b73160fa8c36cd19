"""
Local analysis backend client.

Board updates and new-game announcements go over the persistent websocket
channel when it is open, and otherwise as a one-shot HTTP POST. Failed
messages are not queued or retried; the pipeline resends naturally on its
next cycle because the last-sent snapshot is only updated on success.

Uses only stdlib (urllib, json) for the one-shot requests.

Environment variables:
  BOARDSYNC_BACKEND_URL      HTTP endpoint (default: http://127.0.0.1:3030/fen)
  BOARDSYNC_WS_URL           Websocket endpoint (default: ws://127.0.0.1:3030/ws)
  BOARDSYNC_TIMEOUT          Request timeout in seconds (default: 5)
  BOARDSYNC_RECONNECT_DELAY  Seconds between channel reconnects (default: 5)
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any
from http.client import HTTPException
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from boardsync.core.errors import ChannelDisconnected, TransmissionFailure
from boardsync.core.models import BoardState, ConnectionStatus, GameSession, TransmitResult
from boardsync.integrations.channel import WebSocketChannel


logger = logging.getLogger(__name__)

DEFAULT_BACKEND_URL = "http://127.0.0.1:3030/fen"
DEFAULT_WS_URL = "ws://127.0.0.1:3030/ws"
DEFAULT_TIMEOUT = 5
DEFAULT_RECONNECT_DELAY = 5


@dataclass(frozen=True)
class BackendConfig:
    """Configuration for the analysis backend."""

    backend_url: str
    ws_url: str
    timeout: float
    reconnect_delay: float

    @property
    def new_game_url(self) -> str:
        return f"{self.backend_url}/new_game"


def get_config(env: dict[str, str] | None = None) -> BackendConfig:
    """
    Load configuration from environment variables.

    Args:
        env: Environment dict (defaults to os.environ)

    Returns:
        BackendConfig with endpoints, timeout and reconnect delay
    """
    env = env if env is not None else os.environ
    return BackendConfig(
        backend_url=env.get("BOARDSYNC_BACKEND_URL", DEFAULT_BACKEND_URL).rstrip("/"),
        ws_url=env.get("BOARDSYNC_WS_URL", DEFAULT_WS_URL),
        timeout=float(env.get("BOARDSYNC_TIMEOUT", str(DEFAULT_TIMEOUT))),
        reconnect_delay=float(env.get("BOARDSYNC_RECONNECT_DELAY", str(DEFAULT_RECONNECT_DELAY))),
    )


def post_json(url: str, payload: dict[str, Any], timeout: float) -> dict[str, Any]:
    """
    POST JSON to a URL and return the parsed response.

    An empty response body is returned as {}.

    Raises:
        TransmissionFailure: Network, HTTP, timeout or response decoding error
    """
    data = json.dumps(payload).encode("utf-8")
    request = Request(
        url,
        data=data,
        headers={"Content-Type": "application/json"},
        method="POST",
    )
    try:
        with urlopen(request, timeout=timeout) as response:
            body = response.read().decode("utf-8")
            return json.loads(body) if body.strip() else {}

    except HTTPError as e:
        raise TransmissionFailure(f"HTTP {e.code}: {e.reason}") from e

    except URLError as e:
        raise TransmissionFailure(f"Connection error: {e.reason}") from e

    except json.JSONDecodeError as e:
        raise TransmissionFailure(f"Invalid response: {e}") from e

    except TimeoutError as e:
        raise TransmissionFailure("Request timeout") from e

    except (HTTPException, OSError) as e:
        raise TransmissionFailure(f"Connection dropped: {e!r}") from e


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


def build_state_payload(
    state: BoardState,
    moves: Sequence[str],
    variant: str,
    session: GameSession | None,
    black_at_bottom: bool = False,
) -> dict[str, Any]:
    """The board_update body sent to the backend."""
    return {
        "pieces": state.pieces(),
        "activeColor": state.active_color,
        "fullMoveNumber": state.full_move_number,
        "fen": state.fen(),
        "variant": variant,
        "gameId": session.session_id if session is not None else None,
        "moveList": list(moves),
        "boardFlipped": black_at_bottom,
        "timestamp": _timestamp_ms(),
    }


def build_new_game_payload(session: GameSession) -> dict[str, Any]:
    return {
        "type": "new_game",
        "gameId": session.session_id,
        "variant": session.variant,
        "startPosition": session.start_state.pieces(),
        "timestamp": _timestamp_ms(),
    }


class BackendTransport:
    """
    StateTransport implementation: websocket channel first, HTTP fallback.
    """

    def __init__(
        self,
        config: BackendConfig | None = None,
        channel: WebSocketChannel | None = None,
        poster: Callable[[str, dict[str, Any], float], dict[str, Any]] = post_json,
    ) -> None:
        self._config = config if config is not None else get_config()
        self._channel = channel
        self._poster = poster

    @property
    def config(self) -> BackendConfig:
        return self._config

    @property
    def channel(self) -> WebSocketChannel | None:
        return self._channel

    @property
    def connection_status(self) -> ConnectionStatus:
        if self._channel is None:
            return ConnectionStatus.DISCONNECTED
        return self._channel.status

    async def send_state(
        self,
        state: BoardState,
        moves: Sequence[str],
        variant: str,
        session: GameSession | None,
        black_at_bottom: bool = False,
    ) -> TransmitResult:
        payload = build_state_payload(state, moves, variant, session, black_at_bottom)
        return await self._deliver(
            {"type": "board_update", "data": payload},
            self._config.backend_url,
            payload,
        )

    async def send_new_game(self, session: GameSession) -> TransmitResult:
        payload = build_new_game_payload(session)
        return await self._deliver(payload, self._config.new_game_url, payload)

    async def _deliver(
        self,
        envelope: dict[str, Any],
        http_url: str,
        http_payload: dict[str, Any],
    ) -> TransmitResult:
        if self._channel is not None and self._channel.is_connected:
            try:
                self._channel.send_json(envelope)
                logger.debug(f"Sent {envelope.get('type')} over channel")
                return TransmitResult(sent=True, via="channel")
            except ChannelDisconnected as e:
                logger.warning(f"Channel send failed, falling back to HTTP: {e}")

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None,
                self._poster,
                http_url,
                http_payload,
                self._config.timeout,
            )
            logger.debug(f"Posted {envelope.get('type')} to {http_url}")
            return TransmitResult(sent=True, via="http")
        except TransmissionFailure as e:
            logger.error(f"Failed to send {envelope.get('type')} to {http_url}: {e}")
            return TransmitResult(sent=False, via="http", error=str(e))
        except Exception as e:
            logger.error(f"Unexpected error sending {envelope.get('type')}: {e}")
            return TransmitResult(sent=False, via="http", error=str(e))
