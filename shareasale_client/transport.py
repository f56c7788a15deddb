"""Transport - Sends signed requests to the service and validates responses.

A Transport owns one httpx.Client. Every call computes its own timestamp and
signature and returns them in a CallContext; nothing about a call is stored on
the Transport, so calls on a shared instance do not interfere.

Validation order for a completed request:
    1. transport failure (connection, timeout, protocol)
    2. HTTP status other than 200 OK
    3. XML was requested but the body does not start with '<'
    4. the body contains "Invalid Request" (any case)
"""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping

import httpx

from shareasale_client.errors import ConfigError, ServiceError
from shareasale_client.models import CallContext, Credentials, RawResponse, ServiceEndpoint
from shareasale_client.request_builder import requests_xml
from shareasale_client.signer import auth_headers, rfc1123_timestamp


logger = logging.getLogger(__name__)

INVALID_REQUEST_MARKER = "invalid request"


class Transport:
    """Issues signed GET requests against one service endpoint.

    Usage:
        with Transport(endpoint) as transport:
            response, context = transport.invoke(credentials, "activitysummary", params)
    """

    def __init__(
        self,
        endpoint: ServiceEndpoint | None = None,
        http_transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            endpoint: Service URL, path, and timeout. Defaults to the public API.
            http_transport: Optional httpx transport, e.g. httpx.MockTransport in tests.
        """
        self._endpoint = endpoint or ServiceEndpoint()
        client_kwargs: dict[str, Any] = {"timeout": self._endpoint.timeout}
        if http_transport is not None:
            client_kwargs["transport"] = http_transport
        self._client = httpx.Client(**client_kwargs)

    def __enter__(self) -> "Transport":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    @property
    def endpoint(self) -> ServiceEndpoint:
        return self._endpoint

    @endpoint.setter
    def endpoint(self, endpoint: ServiceEndpoint) -> None:
        self._endpoint = endpoint

    def invoke(
        self,
        credentials: Credentials,
        action: str,
        parameters: Mapping[str, Any],
    ) -> tuple[RawResponse, CallContext]:
        """Send one signed request and validate the response.

        Args:
            credentials: Token and secret key used for signing.
            action: Action name that goes into the signature.
            parameters: Complete query parameter set.

        Returns:
            Tuple of (response, context).

        Raises:
            ConfigError: If token, secret key, service URL, or service path is empty.
            ServiceError: If the request fails or the service reports an error.
        """
        endpoint = self._endpoint
        self._check_preconditions(credentials, endpoint)

        timestamp = rfc1123_timestamp()
        headers = auth_headers(credentials.token, credentials.secret_key, action, timestamp)
        query = dict(parameters)
        context = CallContext(
            action=action,
            timestamp=timestamp,
            signature=headers["x-ShareASale-Authentication"],
            url=endpoint.url,
            query=query,
            headers=headers,
        )

        logger.debug("GET %s action=%s", endpoint.url, action)

        try:
            start_time = time.perf_counter()
            http_response = self._client.get(
                endpoint.url,
                params=query,
                headers=headers,
                timeout=endpoint.timeout,
            )
            elapsed_ms = (time.perf_counter() - start_time) * 1000
        except httpx.TransportError as e:
            raise ServiceError(
                f"Error in request to Web service: {e}",
                body=str(e),
                code=type(e).__name__,
            ) from e

        response = self._convert_response(http_response, elapsed_ms)
        self._validate(response, requests_xml(query))

        logger.debug(
            "Action %s returned %d in %.1fms", action, response.status_code, response.elapsed_ms
        )
        return response, context

    @staticmethod
    def _check_preconditions(credentials: Credentials, endpoint: ServiceEndpoint) -> None:
        missing = [
            field
            for field, value in (
                ("token", credentials.token),
                ("secret_key", credentials.secret_key),
                ("service_url", endpoint.service_url),
                ("service_path", endpoint.service_path),
            )
            if not value
        ]
        if missing:
            raise ConfigError(f"Required parameter is not set: {', '.join(missing)}")

    @staticmethod
    def _convert_response(response: httpx.Response, elapsed_ms: float) -> RawResponse:
        """Convert an httpx Response to a RawResponse with lowercase header keys."""
        headers: dict[str, str] = {}
        for key, value in response.headers.multi_items():
            key_lower = key.lower()
            if key_lower in headers:
                headers[key_lower] = f"{headers[key_lower]}, {value}"
            else:
                headers[key_lower] = value

        return RawResponse(
            status_code=response.status_code,
            reason_phrase=response.reason_phrase,
            headers=headers,
            body=response.text,
            content=response.content,
            elapsed_ms=elapsed_ms,
        )

    @staticmethod
    def _validate(response: RawResponse, expects_xml: bool) -> None:
        """Raise ServiceError if the response is not a successful service reply."""
        if response.status_code != httpx.codes.OK:
            raise ServiceError(
                f"Expected response not received ({response.status_code} "
                f"{response.reason_phrase}). Response details: {response.body}",
                body=response.body,
                status_code=response.status_code,
            )

        # The service answers errors in plain text even when XML was requested
        body = response.body.strip()
        if expects_xml and not body.startswith("<"):
            raise ServiceError(body, status_code=response.status_code)
        if INVALID_REQUEST_MARKER in body.lower():
            raise ServiceError(body, status_code=response.status_code)
