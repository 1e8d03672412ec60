"""HTTP transport for the Permis.io API.

Every API wrapper and the permission evaluator go through ``Transport.request``,
which:

- serializes the body to JSON and injects the bearer credential, the
  content type and any configured custom headers;
- retries network failures and 5xx responses with ``n² × retry_backoff``
  backoff between attempts (no jitter);
- never retries 4xx responses;
- converts non-2xx responses into ``ApiError`` with best-effort extraction of
  message and machine code from the body.

Backoff waits are plain ``asyncio.sleep`` calls, so cancelling the calling
task stops the retry loop immediately.
"""

from __future__ import annotations

import asyncio
import json
import logging
from functools import lru_cache
from typing import Any, Mapping, Optional

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from .config import PermisConfig
from .exceptions import ApiError, DecodeError, NetworkError
from .logging import safe_log_value
from .models import Scope

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


@lru_cache(maxsize=64)
def _adapter(result_type: Any) -> TypeAdapter:
    return TypeAdapter(result_type)


def backoff_delay(attempt: int, unit: float) -> float:
    """Delay in seconds before retry number ``attempt`` (1-based)."""
    return attempt * attempt * unit


def encode_body(body: Any) -> Any:
    """Convert pydantic models (or lists of them) to JSON-ready data."""
    if isinstance(body, BaseModel):
        return body.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(body, (list, tuple)):
        return [encode_body(item) for item in body]
    if isinstance(body, dict):
        return {key: encode_body(value) for key, value in body.items()}
    return body


def clean_params(params: Optional[Mapping[str, Any]]) -> dict[str, str]:
    """Drop empty query parameters and stringify the rest."""
    if not params:
        return {}
    return {key: str(value) for key, value in params.items() if value not in (None, "", 0)}


def parse_error(status_code: int, body: bytes) -> ApiError:
    """Build an ApiError from a non-2xx response body.

    Recognises ``{"message" | "error" | "detail": ..., "code": ...}`` bodies;
    anything else becomes the error message verbatim. An empty message falls
    back to the HTTP reason phrase.
    """
    text = body.decode("utf-8", errors="replace")
    try:
        payload = json.loads(text) if text else None
    except ValueError:
        payload = None

    if not isinstance(payload, dict):
        return ApiError(text or httpx.codes.get_reason_phrase(status_code), status_code=status_code)

    message = next(
        (payload[field] for field in ("message", "error", "detail") if isinstance(payload.get(field), str) and payload[field]),
        "",
    )
    code = payload.get("code") if isinstance(payload.get("code"), str) else None

    return ApiError(
        message or httpx.codes.get_reason_phrase(status_code),
        status_code=status_code,
        code=code or None,
        body=payload,
    )


class Transport:
    """Executes authenticated HTTP calls against the authorization service.

    Args:
        config: Client configuration (base URL, credential, retry policy).
        http_client: Optional pre-built ``httpx.AsyncClient``. When omitted the
            transport creates and owns one; ``aclose()`` only closes owned clients.
    """

    def __init__(self, config: PermisConfig, http_client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout)

    @property
    def config(self) -> PermisConfig:
        return self._config

    # ── URL builders ────────────────────────────────────

    def build_url(self, path: str) -> str:
        return f"{self._config.api_url}{path}"

    def facts_url(self, scope: Scope, path: str) -> str:
        return self.build_url(f"/v1/facts/{scope.project_id}/{scope.environment_id}{path}")

    def schema_url(self, scope: Scope, path: str) -> str:
        return self.build_url(f"/v1/schema/{scope.project_id}/{scope.environment_id}{path}")

    # ── Requests ────────────────────────────────────────

    def _headers(self) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._config.token}",
            "Content-Type": JSON_CONTENT_TYPE,
        }
        headers.update(self._config.custom_headers)
        return headers

    async def request(
        self,
        method: str,
        url: str,
        body: Any = None,
        *,
        params: Optional[Mapping[str, Any]] = None,
        result: Any = None,
        retry: bool = True,
    ) -> Any:
        """Perform a request with retry.

        Args:
            method: HTTP method.
            url: Absolute URL (see ``build_url`` / ``facts_url`` / ``schema_url``).
            body: JSON body; pydantic models are dumped by alias without nulls.
            params: Query parameters; empty values are dropped.
            result: Optional type to validate the JSON response into.
            retry: Set False for a single attempt.

        Returns:
            None for an empty body, the validated ``result`` if given,
            otherwise the decoded JSON.

        Raises:
            ApiError: Non-2xx response (4xx immediately, 5xx after retries).
            NetworkError: No response after all attempts.
            DecodeError: Body with a broken content encoding, or a 2xx body that
                is not JSON or does not match ``result``.
            asyncio.CancelledError: The calling task was cancelled.
        """
        attempts = 1 + (self._config.retry_attempts if retry else 0)
        attempt = 0

        while True:
            try:
                return await self._send(method, url, body, params, result)
            except DecodeError:
                raise
            except ApiError as e:
                if e.is_client_error:
                    raise
                error: ApiError | NetworkError = e
            except NetworkError as e:
                error = e

            attempt += 1
            if attempt >= attempts:
                if attempts > 1:
                    logger.warning("Request %s %s failed after %d attempts: %s", method, url, attempts, error)
                raise error

            logger.debug("Request %s %s failed (attempt %d/%d): %s", method, url, attempt, attempts, error)
            await asyncio.sleep(backoff_delay(attempt, self._config.retry_backoff))

    async def _send(
        self,
        method: str,
        url: str,
        body: Any,
        params: Optional[Mapping[str, Any]],
        result: Any,
    ) -> Any:
        """Perform a single HTTP exchange."""
        logger.debug("Making request %s %s", method, url)

        try:
            response = await self._client.request(
                method,
                url,
                json=encode_body(body) if body is not None else None,
                params=clean_params(params) or None,
                headers=self._headers(),
            )
        except httpx.DecodingError as e:
            raise DecodeError(f"failed to decode response: {e}", status_code=0) from e
        except httpx.RequestError as e:
            raise NetworkError(f"request failed: {e}", method=method, url=url) from e

        logger.debug(
            "Received response %d for %s %s: %s",
            response.status_code,
            method,
            url,
            safe_log_value(response.content),
        )

        if not response.is_success:
            raise parse_error(response.status_code, response.content)

        if not response.content:
            return None

        try:
            data = response.json()
        except ValueError as e:
            raise DecodeError(f"failed to decode response: {e}", status_code=response.status_code) from e

        if result is None:
            return data

        try:
            return _adapter(result).validate_python(data)
        except ValidationError as e:
            raise DecodeError(
                f"unexpected response shape: {e.error_count()} validation error(s)",
                status_code=response.status_code,
                errors=e.errors(),
            ) from e

    # convenience verbs

    async def get(self, url: str, *, params: Optional[Mapping[str, Any]] = None, result: Any = None) -> Any:
        return await self.request("GET", url, params=params, result=result)

    async def post(self, url: str, body: Any = None, *, result: Any = None) -> Any:
        return await self.request("POST", url, body, result=result)

    async def put(self, url: str, body: Any = None, *, result: Any = None) -> Any:
        return await self.request("PUT", url, body, result=result)

    async def patch(self, url: str, body: Any = None, *, result: Any = None) -> Any:
        return await self.request("PATCH", url, body, result=result)

    async def delete(
        self,
        url: str,
        body: Any = None,
        *,
        params: Optional[Mapping[str, Any]] = None,
        result: Any = None,
    ) -> Any:
        return await self.request("DELETE", url, body, params=params, result=result)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = [
    "Transport",
    "backoff_delay",
    "clean_params",
    "encode_body",
    "parse_error",
]
