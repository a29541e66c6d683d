"""
Gateway transport - drives a messaging session hosted by a session gateway.

The gateway runs the messaging protocol (handshake, encryption, pairing) and
exposes each session over HTTP:

    POST   /sessions                   open a session from stored auth state
    GET    /sessions/{id}/events       Server-Sent Events (connection.update, creds.update)
    POST   /sessions/{id}/acks         acknowledge a persisted creds.update
    POST   /sessions/{id}/messages     send a message payload
    DELETE /sessions/{id}              release the session
"""

import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from ..storage.state import AuthState, CredentialsUpdate
from .base import ConnectionEvent, ConnectionUpdate, TransportError

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    """Extract the gateway's error message from a failed response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("error") or body.get("detail") or body)
    return str(body)


class GatewayConnection:
    """One gateway session. Released on close and never reused."""

    def __init__(self, client: httpx.AsyncClient, connection_id: str, timeout: float):
        self._client = client
        self.connection_id = connection_id
        self._timeout = timeout
        self._closed = False

    @property
    def _path(self) -> str:
        return f"/sessions/{self.connection_id}"

    async def events(self) -> AsyncIterator[ConnectionEvent]:
        """Translate the gateway's SSE stream into connection events."""
        # Long-lived stream: no read timeout
        stream_timeout = httpx.Timeout(self._timeout, read=None)
        try:
            async with self._client.stream(
                "GET", f"{self._path}/events", timeout=stream_timeout
            ) as response:
                if response.status_code != 200:
                    await response.aread()
                    yield ConnectionUpdate(
                        connection="close",
                        status_code=response.status_code,
                        error=_error_message(response),
                    )
                    return

                event_name: Optional[str] = None
                data_lines: List[str] = []

                async for line in response.aiter_lines():
                    if line.startswith(":"):
                        # Keepalive comment
                        continue
                    if line.startswith("event:"):
                        event_name = line[len("event:"):].strip()
                        continue
                    if line.startswith("data:"):
                        data_lines.append(line[len("data:"):].lstrip())
                        continue
                    if line.strip():
                        continue

                    # Blank line terminates an event
                    if not data_lines:
                        event_name = None
                        continue
                    event = self._parse_event(event_name, "\n".join(data_lines))
                    event_name, data_lines = None, []
                    if event is None:
                        continue

                    yield event
                    if isinstance(event, ConnectionUpdate) and event.connection == "close":
                        return

        except httpx.HTTPError as e:
            if self._closed:
                return
            logger.warning(f"Gateway event stream for {self.connection_id} failed: {e}")
            yield ConnectionUpdate(connection="close", error=str(e))
            return

        if not self._closed:
            yield ConnectionUpdate(connection="close", error="Gateway event stream ended")

    def _parse_event(self, event_name: Optional[str], data: str) -> Optional[ConnectionEvent]:
        try:
            payload = json.loads(data)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse gateway event data: {e}")
            return None

        if event_name not in ("connection.update", "creds.update"):
            logger.debug(f"Ignoring gateway event: {event_name}")
            return None
        if not isinstance(payload, dict):
            logger.error(f"Ignoring {event_name} event with non-object payload: {data[:200]}")
            return None

        try:
            if event_name == "connection.update":
                return ConnectionUpdate.from_dict(payload)
            return CredentialsUpdate.from_dict(payload)
        except (TypeError, ValueError) as e:
            logger.error(f"Ignoring malformed {event_name} event: {e}")
            return None

    async def acknowledge(self, update: CredentialsUpdate) -> None:
        """Acknowledge a credential update after it has been persisted."""
        try:
            response = await self._client.post(
                f"{self._path}/acks", json={"updateId": update.update_id}
            )
        except httpx.HTTPError as e:
            raise TransportError(f"Failed to acknowledge update {update.update_id}: {e}")
        if response.is_error:
            raise TransportError(_error_message(response), response.status_code)

    async def send_message(self, jid: str, content: Dict[str, Any]) -> Dict[str, Any]:
        """Send a message payload through the gateway."""
        try:
            response = await self._client.post(
                f"{self._path}/messages", json={"jid": jid, "content": content}
            )
        except httpx.HTTPError as e:
            raise TransportError(f"Gateway request failed: {e}")

        if response.is_error:
            raise TransportError(_error_message(response), response.status_code)

        return response.json() if response.content else {}

    async def close(self) -> None:
        """Release the gateway session."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._client.delete(self._path)
        except httpx.HTTPError as e:
            logger.debug(f"Release of gateway session {self.connection_id} failed: {e}")


class GatewayTransport:
    """Opens gateway sessions from stored authentication state."""

    def __init__(
        self,
        base_url: str,
        session_name: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize gateway transport.

        Args:
            base_url: Gateway base URL
            session_name: Name of the session to open
            timeout: Connect/request timeout in seconds
            client: Optional preconfigured httpx client (tests)
        """
        self.session_name = session_name
        self.timeout = timeout
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def connect(self, state: AuthState) -> GatewayConnection:
        """Open a new gateway session."""
        body = {"session": self.session_name, **state.to_dict()}
        try:
            response = await self._client.post("/sessions", json=body)
        except httpx.HTTPError as e:
            raise TransportError(f"Gateway unreachable: {e}")

        if response.is_error:
            raise TransportError(_error_message(response), response.status_code)

        try:
            reply = response.json()
        except ValueError:
            raise TransportError(f"Gateway returned a non-JSON reply: {response.text[:200]!r}")
        connection_id = reply.get("connection_id") if isinstance(reply, dict) else None
        if not connection_id:
            raise TransportError("Gateway did not return a connection_id")

        logger.info(f"Opened gateway session {connection_id} for {self.session_name}")
        return GatewayConnection(self._client, connection_id, self.timeout)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
