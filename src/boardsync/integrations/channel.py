"""
Persistent backend channel over a websocket.

The channel connects, reads messages until the socket drops, then waits a
fixed delay and connects again, for as long as it runs. Blocking socket
calls (connect, recv) run in the default executor so the event loop stays
free. Outbound sends are not queued: sending while closed raises
ChannelDisconnected and the caller falls back to a one-shot request.
"""

import asyncio
import json
import logging
import time
from collections.abc import Callable
from typing import Any

import websocket

from boardsync.core.errors import ChannelDisconnected
from boardsync.core.models import ConnectionStatus


logger = logging.getLogger(__name__)

MessageHandler = Callable[[dict[str, Any]], None]
StatusHandler = Callable[[ConnectionStatus], None]


class WebSocketChannel:
    """Reconnecting JSON-over-websocket channel."""

    def __init__(
        self,
        url: str,
        reconnect_delay: float = 5.0,
        timeout: float = 5.0,
        connector: Callable[..., websocket.WebSocket] = websocket.create_connection,
    ) -> None:
        self._url = url
        self._reconnect_delay = reconnect_delay
        self._timeout = timeout
        self._connector = connector

        self._ws: websocket.WebSocket | None = None
        self._status = ConnectionStatus.DISCONNECTED
        self._task: asyncio.Task | None = None
        self._wake = asyncio.Event()
        self._on_message: MessageHandler | None = None
        self._on_status: StatusHandler | None = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def is_connected(self) -> bool:
        return self._status == ConnectionStatus.CONNECTED and self._ws is not None

    def start(self, on_message: MessageHandler, on_status: StatusHandler | None = None) -> None:
        """Start the connect/receive/reconnect task."""
        self._on_message = on_message
        self._on_status = on_status
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        self._close_socket()
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._set_status(ConnectionStatus.DISCONNECTED)

    def reconnect(self) -> None:
        """Drop the current socket, if any, and reconnect without waiting."""
        logger.info("Channel reconnect requested")
        self._wake.set()
        self._close_socket()

    def send_json(self, payload: dict[str, Any]) -> None:
        """
        Send one JSON message.

        Raises:
            ChannelDisconnected: The channel is not open or the send failed
        """
        ws = self._ws
        if ws is None or not self.is_connected:
            raise ChannelDisconnected(f"channel to {self._url} is not open")
        try:
            ws.send(json.dumps(payload))
        except (websocket.WebSocketException, OSError) as e:
            self._close_socket()
            self._set_status(ConnectionStatus.DISCONNECTED)
            raise ChannelDisconnected(f"send failed: {e}") from e

    def _set_status(self, status: ConnectionStatus) -> None:
        if status != self._status:
            logger.info(f"Channel status: {self._status.name} -> {status.name}")
            self._status = status
            if self._on_status is not None:
                try:
                    self._on_status(status)
                except Exception as e:
                    logger.error(f"Status handler error: {e}")

    def _close_socket(self) -> None:
        ws, self._ws = self._ws, None
        if ws is not None:
            try:
                ws.close()
            except (websocket.WebSocketException, OSError) as e:
                logger.debug(f"Error closing channel: {e}")

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            self._set_status(ConnectionStatus.CONNECTING)
            try:
                ws = await loop.run_in_executor(
                    None,
                    lambda: self._connector(self._url, timeout=self._timeout),
                )
            except (websocket.WebSocketException, OSError) as e:
                logger.warning(f"Channel connect to {self._url} failed: {e}")
                self._set_status(ConnectionStatus.DISCONNECTED)
            else:
                ws.settimeout(None)
                self._ws = ws
                self._set_status(ConnectionStatus.CONNECTED)
                try:
                    await self._receive(ws)
                except (websocket.WebSocketException, OSError) as e:
                    logger.warning(f"Channel closed: {e}")
                finally:
                    if self._ws is ws:
                        self._close_socket()
                    self._set_status(ConnectionStatus.DISCONNECTED)

            await self._wait_before_retry()

    async def _wait_before_retry(self) -> None:
        if self._wake.is_set():
            self._wake.clear()
            return
        try:
            await asyncio.wait_for(self._wake.wait(), timeout=self._reconnect_delay)
        except asyncio.TimeoutError:
            pass
        self._wake.clear()

    async def _receive(self, ws: websocket.WebSocket) -> None:
        loop = asyncio.get_running_loop()
        while True:
            raw = await loop.run_in_executor(None, ws.recv)
            if not raw:
                logger.info("Channel closed by backend")
                return

            try:
                message = json.loads(raw)
            except json.JSONDecodeError as e:
                logger.warning(f"Ignoring malformed channel message: {e}")
                continue
            if not isinstance(message, dict):
                logger.warning(f"Ignoring non-object channel message: {raw!r:.80}")
                continue

            if message.get("type") == "ping":
                try:
                    self.send_json({"type": "pong", "timestamp": int(time.time() * 1000)})
                except ChannelDisconnected as e:
                    logger.warning(f"Could not answer ping: {e}")
                    return
                continue

            if self._on_message is not None:
                try:
                    self._on_message(message)
                except Exception as e:
                    logger.error(f"Message handler error: {e}")
