"""WebSocket account-change subscriptions.

Callers get an opaque handle per subscription. Handles stay valid across
reconnects: after the connection drops, every live subscription is
re-established and mapped onto the new server-side subscription id.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

import websockets
from websockets.exceptions import ConnectionClosed

from solana_portfolio.config import SolanaConfig
from solana_portfolio.utils.errors import PortfolioError, SolanaRpcError
from solana_portfolio.utils.resilience import with_deadline
from solana_portfolio.utils.validation import require_public_key

logger = logging.getLogger(__name__)

LamportsCallback = Callable[[int], Any]


class AccountSubscriptionClient:
    """Client for the ``accountSubscribe`` channel of the Solana WebSocket API."""

    provider = "solana-ws"

    def __init__(
        self,
        config: SolanaConfig,
        connect: Callable[..., Awaitable[Any]] = websockets.connect,
        request_timeout: float = 30.0,
        reconnect_delay: float = 1.0
    ):
        """Initialize the WebSocket client.

        Args:
            config: Solana configuration
            connect: Connection factory, replaceable in tests
            request_timeout: Seconds to wait for a subscribe/unsubscribe answer
            reconnect_delay: Seconds to wait before reconnecting after a drop
        """
        self.ws_url = config.websocket_url
        self.commitment = config.commitment
        self._connect = connect
        self.request_timeout = request_timeout
        self.reconnect_delay = reconnect_delay

        # Tracking subscriptions and requests
        self.subscriptions: Dict[int, Dict[str, Any]] = {}
        self._handles_by_server_id: Dict[int, int] = {}
        self.request_id = 0
        self._last_handle = 0
        self.ws_connection = None
        self.running = False
        self.task: Optional[asyncio.Task] = None
        self._callback_tasks: Set[asyncio.Task] = set()

        # Response handling
        self.response_futures: Dict[int, asyncio.Future] = {}

    def _get_next_id(self) -> int:
        self.request_id += 1
        return self.request_id

    async def connect(self) -> None:
        """Connect to the WebSocket server."""
        if self.ws_connection is not None:
            return

        self.ws_connection = await self._connect(
            self.ws_url,
            max_size=None,  # No limit on message size
            ping_interval=20,
            ping_timeout=20
        )
        self.running = True
        self.task = asyncio.create_task(self._listen())
        logger.debug(f"Connected to {self.ws_url}")

    async def disconnect(self) -> None:
        """Drop every subscription and close the connection."""
        self.running = False
        self.subscriptions.clear()
        self._handles_by_server_id.clear()
        self._fail_pending(ConnectionError("WebSocket client disconnected"))

        if self.ws_connection is not None:
            await self.ws_connection.close()
            self.ws_connection = None

        if self.task is not None:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
            self.task = None

    def _fail_pending(self, error: Exception) -> None:
        for future in self.response_futures.values():
            if not future.done():
                future.set_exception(error)
        self.response_futures.clear()

    async def _listen(self) -> None:
        """Read messages until the connection closes or the client stops."""
        connection = self.ws_connection
        try:
            while self.running and connection is not None:
                self.handle_message(await connection.recv())
        except ConnectionClosed:
            if self.running:
                await self._reconnect()
        except asyncio.CancelledError:
            # Normal task cancellation
            pass

    async def _reconnect(self) -> None:
        logger.warning(f"WebSocket connection to {self.ws_url} closed, reconnecting")
        self.ws_connection = None
        self._fail_pending(ConnectionError("WebSocket connection closed"))
        self._handles_by_server_id.clear()
        await asyncio.sleep(self.reconnect_delay)
        try:
            await self.connect()
            for handle, subscription in list(self.subscriptions.items()):
                server_id = await self._send_request("accountSubscribe", subscription["params"])
                subscription["server_id"] = server_id
                self._handles_by_server_id[server_id] = handle
        except (OSError, ConnectionClosed, PortfolioError) as e:
            logger.error(f"WebSocket reconnect failed: {e}")

    def handle_message(self, raw: Any) -> None:
        """Dispatch one message: a notification or a request response."""
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning(f"Ignoring non-JSON WebSocket message: {raw!r:.100}")
            return
        if not isinstance(data, dict):
            return

        if data.get("method") == "accountNotification":
            self._handle_notification(data.get("params") or {})
        elif "id" in data:
            future = self.response_futures.pop(data["id"], None)
            if future is None or future.done():
                return
            if data.get("error"):
                error = data["error"] if isinstance(data["error"], dict) else {"message": str(data["error"])}
                future.set_exception(SolanaRpcError(
                    f"WebSocket error: {error.get('message', 'Unknown error')}", error, provider=self.provider
                ))
            else:
                future.set_result(data.get("result"))

    def _handle_notification(self, params: Dict[str, Any]) -> None:
        handle = self._handles_by_server_id.get(params.get("subscription"))
        subscription = self.subscriptions.get(handle)
        if subscription is None:
            return
        value = (params.get("result") or {}).get("value") or {}
        lamports = value.get("lamports")
        if isinstance(lamports, bool) or not isinstance(lamports, int):
            logger.debug(f"Account notification without lamports: {params!r:.200}")
            return
        try:
            result = subscription["callback"](lamports)
            if asyncio.iscoroutine(result):
                task = asyncio.ensure_future(result)
                self._callback_tasks.add(task)
                task.add_done_callback(self._callback_done)
        except Exception as e:
            logger.error(f"Account callback for {subscription['pubkey']} failed: {str(e)}")

    def _callback_done(self, task: asyncio.Task) -> None:
        self._callback_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Async account callback failed: {str(error)}")

    async def _send_request(self, method: str, params: List[Any]) -> Any:
        """Send a JSON-RPC request over WebSocket and wait for its answer.

        Raises:
            DeadlineExceededError: If no answer arrives within ``request_timeout``
            SolanaRpcError: If the server answers with an error
        """
        if self.ws_connection is None:
            await self.connect()

        request_id = self._get_next_id()
        request = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
            "params": params
        }

        future = asyncio.get_running_loop().create_future()
        self.response_futures[request_id] = future
        try:
            await self.ws_connection.send(json.dumps(request))
            return await with_deadline(future, self.request_timeout, f"{self.provider}:{method}")
        finally:
            self.response_futures.pop(request_id, None)

    async def subscribe(self, pubkey: str, callback: LamportsCallback) -> int:
        """Subscribe to changes of an account.

        Args:
            pubkey: Account address
            callback: Called with the new lamport balance on every change

        Returns:
            Subscription handle

        Raises:
            InvalidAddressError: If the address is invalid
        """
        require_public_key(pubkey)
        params = [pubkey, {"encoding": "base64", "commitment": self.commitment}]
        server_id = await self._send_request("accountSubscribe", params)

        self._last_handle += 1
        handle = self._last_handle
        self.subscriptions[handle] = {
            "pubkey": pubkey,
            "callback": callback,
            "params": params,
            "server_id": server_id
        }
        self._handles_by_server_id[server_id] = handle
        logger.debug(f"Subscribed to {pubkey} (handle {handle}, subscription {server_id})")
        return handle

    async def unsubscribe(self, handle: int) -> bool:
        """Cancel a subscription.

        Args:
            handle: Handle returned by ``subscribe``

        Returns:
            False if the handle is unknown or the server refused, True otherwise
        """
        subscription = self.subscriptions.pop(handle, None)
        if subscription is None:
            return False
        self._handles_by_server_id.pop(subscription["server_id"], None)
        if self.ws_connection is None:
            return True
        try:
            return bool(await self._send_request("accountUnsubscribe", [subscription["server_id"]]))
        except (OSError, ConnectionClosed, PortfolioError) as e:
            logger.warning(f"Unsubscribe of handle {handle} failed: {e}")
            return False
