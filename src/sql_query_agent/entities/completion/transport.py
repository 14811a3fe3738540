"""HTTP transport for the Bedrock runtime ``InvokeModel`` API.

Requests are authenticated with a Bedrock API key sent as a bearer
token. The request timeout is the only cancellation mechanism; the
transport never retries.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import httpx

from sql_query_agent.entities.shared.errors import (
    AuthenticationError,
    BackendResponseError,
    BackendTransportError,
)

logger = logging.getLogger(__name__)

_AUTH_STATUS_CODES = frozenset({401, 403})


def runtime_endpoint(region: str) -> str:
    """Return the default runtime endpoint for ``region``."""
    return f"https://bedrock-runtime.{region}.amazonaws.com"


class HttpxCompletionTransport:
    """``CompletionTransport`` backed by a reusable ``httpx.Client``.

    Args:
        endpoint: Runtime base URL.
        api_key: Bearer API key.
        timeout: Request timeout in seconds.
        client: Pre-built client, used as-is (tests pass one with ``httpx.MockTransport``).
    """

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        *,
        timeout: float = 60.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._endpoint = endpoint.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)
        self._owns_client = client is None
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def invoke(self, model_id: str, body: Mapping[str, Any]) -> dict[str, Any]:
        """POST ``body`` to ``/model/{model_id}/invoke`` and decode the JSON reply.

        Raises:
            AuthenticationError: The backend answered 401 or 403.
            BackendTransportError: Network failure or any other non-2xx status.
            BackendResponseError: The reply is not a JSON object.
        """
        url = f"{self._endpoint}/model/{quote(model_id, safe='')}/invoke"
        logger.debug("Invoking %s", model_id)

        try:
            resp = self._client.post(url, headers=self._headers, json=dict(body))
        except httpx.HTTPError as exc:
            raise BackendTransportError(f"Request to {model_id} failed: {exc}") from exc

        if resp.status_code in _AUTH_STATUS_CODES:
            raise AuthenticationError(
                f"Backend rejected credentials for {model_id} (HTTP {resp.status_code})"
            )
        if resp.is_error:
            raise BackendTransportError(
                f"Backend returned HTTP {resp.status_code} for {model_id}: {resp.text[:200]}",
                status_code=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            raise BackendResponseError(f"Non-JSON response from {model_id}") from exc
        if not isinstance(payload, dict):
            raise BackendResponseError(f"Unexpected response type from {model_id}: {type(payload)}")
        return payload

    def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._owns_client:
            self._client.close()
