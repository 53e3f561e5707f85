"""Base HTTP and JSON-RPC clients.

This module provides the core functionality for talking to providers: a lazily
created shared ``httpx.AsyncClient``, mapping of transport failures onto the
engine's error taxonomy, and JSON-RPC request handling with retries.
"""

# Standard library imports
import asyncio
import itertools
import json
from typing import Any, Dict, List, Optional, Union

# Third-party library imports
import httpx

# Internal imports
from solana_portfolio.logging_config import get_logger
from solana_portfolio.utils.errors import (
    DeadlineExceededError,
    ProviderError,
    RateLimitError,
    SchemaMismatchError,
    SolanaRpcError,
)
from solana_portfolio.utils.resilience import RATE_LIMIT_RPC_CODES, RetryPolicy, Sleep, with_retry

# Get logger
logger = get_logger(__name__)

TIMEOUT_STATUS_CODES = {408, 504}


def _retry_after(response: httpx.Response) -> Optional[float]:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class BaseHttpClient:
    """Shared plumbing for every provider client."""

    provider = "http"

    def __init__(
        self,
        timeout: float = 30.0,
        retry_policy: Optional[RetryPolicy] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Sleep = asyncio.sleep
    ):
        """Initialize the client.

        Args:
            timeout: Per-request timeout in seconds
            retry_policy: Attempts and backoff for transient failures
            http_client: Optional pre-built client, e.g. with a mock transport
            sleep: Sleep function used between retries
        """
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy()
        self.headers = {"Content-Type": "application/json"}
        self._sleep = sleep

        # Shared HTTP client for better performance
        self._http_client = http_client

    def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.timeout,
                limits=httpx.Limits(max_keepalive_connections=10, max_connections=20)
            )
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self):
        self._get_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _send(self, method: str, url: str, operation: str, **kwargs: Any) -> Any:
        """Send one HTTP request and return the decoded JSON body.

        Args:
            method: HTTP method
            url: Request URL
            operation: Name of the call for errors and logs
            **kwargs: Passed to ``httpx.AsyncClient.request``

        Returns:
            The decoded JSON body

        Raises:
            DeadlineExceededError: If the request timed out
            RateLimitError: If the provider answered 429
            ProviderError: For other transport or HTTP failures
            SchemaMismatchError: If the body is not JSON
        """
        try:
            response = await self._get_client().request(method, url, headers=self.headers, **kwargs)
        except httpx.TimeoutException as e:
            raise DeadlineExceededError(f"{self.provider}:{operation}", self.timeout) from e
        except httpx.RequestError as e:
            raise ProviderError(f"Request to {self.provider} failed: {e}", provider=self.provider) from e

        if response.status_code == 429:
            raise RateLimitError(
                f"{self.provider} rate limited {operation} (HTTP 429)",
                provider=self.provider,
                retry_after=_retry_after(response)
            )
        if response.status_code in TIMEOUT_STATUS_CODES:
            raise DeadlineExceededError(f"{self.provider}:{operation} (HTTP {response.status_code})")
        if response.status_code >= 400:
            raise ProviderError(
                f"{self.provider} returned HTTP {response.status_code} for {operation}",
                provider=self.provider,
                details={"status_code": response.status_code}
            )

        try:
            return response.json()
        except ValueError as e:
            raise SchemaMismatchError(f"{self.provider} returned a non-JSON body for {operation}",
                                      provider=self.provider) from e

    async def _get_json(self, url: str, operation: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a JSON document, retrying transient failures."""
        return await with_retry(
            lambda: self._send("GET", url, operation, params=params),
            self.retry_policy.max_attempts,
            self.retry_policy.base_delay,
            sleep=self._sleep,
            label=f"{self.provider}:{operation}"
        )


class JsonRpcClient(BaseHttpClient):
    """Client for a JSON-RPC 2.0 endpoint."""

    provider = "json-rpc"

    def __init__(self, url: str, **kwargs: Any):
        """Initialize the client.

        Args:
            url: Endpoint URL
            **kwargs: See ``BaseHttpClient``
        """
        super().__init__(**kwargs)
        self.url = url
        self._ids = itertools.count(1)

    async def _post(self, method: str, params: Union[List[Any], Dict[str, Any]]) -> Any:
        """Make a single JSON-RPC request.

        Args:
            method: The RPC method to call
            params: Positional (list) or named (dict) parameters

        Returns:
            The ``result`` member of the response

        Raises:
            RateLimitError: If the node reports rate limiting
            SolanaRpcError: If the RPC server returns any other error
            SchemaMismatchError: If the response is not a JSON-RPC envelope
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params
        }
        log_params = json.dumps(params)
        if len(log_params) > 200:
            log_params = log_params[:197] + "..."
        logger.debug(f"{self.provider} request: method={method}, params={log_params}")

        body = await self._send("POST", self.url, method, json=payload)
        if not isinstance(body, dict):
            raise SchemaMismatchError(f"Malformed JSON-RPC response for {method}", provider=self.provider)

        error = body.get("error")
        if error:
            if not isinstance(error, dict):
                error = {"message": str(error)}
            message = f"{self.provider} error: {error.get('message', 'Unknown error')}"
            if "data" in error:
                message += f" - {json.dumps(error['data'])}"
            if error.get("code") in RATE_LIMIT_RPC_CODES or "rate limit" in message.lower():
                raise RateLimitError(message, provider=self.provider)
            raise SolanaRpcError(message, error, provider=self.provider)

        if "result" not in body:
            raise SchemaMismatchError(f"JSON-RPC response for {method} has no result", provider=self.provider)
        return body["result"]

    async def _make_request(self, method: str, params: Union[List[Any], Dict[str, Any], None] = None) -> Any:
        """Make a JSON-RPC request, retrying rate limiting and timeouts.

        Args:
            method: The RPC method to call
            params: The parameters to pass to the method

        Returns:
            The ``result`` member of the response
        """
        if params is None:
            params = []
        return await with_retry(
            lambda: self._post(method, params),
            self.retry_policy.max_attempts,
            self.retry_policy.base_delay,
            sleep=self._sleep,
            label=f"{self.provider}:{method}"
        )
