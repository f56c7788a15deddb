"""ShareASale client - the library entry point.

    with ShareASaleClient("12345", token, secret_key) as client:
        summary = client.invoke("activitysummary")
        result = client.invoke("void", {"ordernumber": "A-100", "date": "10/19/2026"})

invoke() returns a record dict or a list of record dicts for report and
maintenance actions, and the trimmed response text for transaction actions.
invoke_detailed() returns the same value wrapped in a CallResult together with
what was signed and sent, for debugging.
"""

from __future__ import annotations

from typing import Any, Mapping

import httpx
from pydantic import ValidationError

from shareasale_client.actions import resolve_action
from shareasale_client.errors import ConfigError
from shareasale_client.models import (
    DEFAULT_SERVICE_PATH,
    DEFAULT_SERVICE_URL,
    DEFAULT_TIMEOUT,
    DEFAULT_VERSION,
    CallResult,
    ClientConfig,
    Credentials,
    ServiceEndpoint,
)
from shareasale_client.request_builder import build_parameters
from shareasale_client.transport import Transport
from shareasale_client.xml_records import normalize_records


def _validate_credentials(fields: dict[str, Any]) -> Credentials:
    """Build Credentials, coercing numeric IDs to str and raising ConfigError on bad types."""
    try:
        return Credentials.model_validate(fields)
    except ValidationError as e:
        raise ConfigError(f"Invalid credentials: {e}") from e


class ShareASaleClient:
    """Signs and dispatches ShareASale merchant API actions.

    Credential and endpoint fields can be changed between calls through the
    properties below. Each call snapshots them when it starts.
    """

    def __init__(
        self,
        merchant_id: str | int = "",
        token: str = "",
        secret_key: str = "",
        version: str | float = DEFAULT_VERSION,
        service_url: str = DEFAULT_SERVICE_URL,
        service_path: str = DEFAULT_SERVICE_PATH,
        timeout: float = DEFAULT_TIMEOUT,
        strict_xml: bool = False,
        http_transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            merchant_id: ShareASale merchant ID.
            token: API token.
            secret_key: API secret key.
            version: API protocol version.
            service_url: Scheme and host of the API.
            service_path: Path of the action endpoint.
            timeout: Request timeout in seconds.
            strict_xml: Raise ParseError on malformed XML instead of returning [].
            http_transport: Optional httpx transport (tests, proxies).
        """
        self._credentials = _validate_credentials(
            {
                "merchant_id": merchant_id,
                "token": token,
                "secret_key": secret_key,
                "version": version,
            }
        )
        self._strict_xml = strict_xml
        self._transport = Transport(
            ServiceEndpoint(service_url=service_url, service_path=service_path, timeout=timeout),
            http_transport=http_transport,
        )

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        http_transport: httpx.BaseTransport | None = None,
    ) -> "ShareASaleClient":
        return cls(
            merchant_id=config.merchant_id,
            token=config.token,
            secret_key=config.secret_key,
            version=config.version,
            service_url=config.service_url,
            service_path=config.service_path,
            timeout=config.timeout,
            strict_xml=config.strict_xml,
            http_transport=http_transport,
        )

    def __enter__(self) -> "ShareASaleClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._transport.close()

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def invoke(self, action: str, options: Mapping[str, Any] | None = None) -> Any:
        """Invoke *action* (any casing) and return its normalized result.

        Args:
            action: Action name from the catalog, e.g. "activitysummary" or "VOID".
            options: Extra query parameters. These override built-in parameters,
                     including "action" and "format".

        Returns:
            A record dict or list of record dicts for XML actions, the trimmed
            body text for transaction actions.

        Raises:
            UnknownActionError: If *action* is not in the catalog.
            ConfigError: If a credential or endpoint field is empty.
            ServiceError: If the request fails or the service reports an error.
            ParseError: If strict_xml is set and the XML body is malformed.
        """
        return self.invoke_detailed(action, options).records

    def invoke_detailed(self, action: str, options: Mapping[str, Any] | None = None) -> CallResult:
        """Like invoke(), but return a CallResult with the request diagnostics."""
        descriptor = resolve_action(action)
        credentials = self._credentials
        parameters = build_parameters(credentials, descriptor, options)

        response, context = self._transport.invoke(credentials, descriptor.name, parameters)

        parse_errors: list[str] = []
        if descriptor.record_tag:
            records, parse_errors = normalize_records(
                response.content, descriptor.record_tag, strict=self._strict_xml
            )
        else:
            records = response.body.strip()

        return CallResult(
            action=descriptor,
            context=context,
            response=response,
            records=records,
            parse_errors=parse_errors,
        )

    # -------------------------------------------------------------------------
    # Credential and endpoint accessors
    # -------------------------------------------------------------------------

    def _replace_credential(self, field: str, value: Any) -> None:
        self._credentials = _validate_credentials({**self._credentials.model_dump(), field: value})

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    @property
    def merchant_id(self) -> str:
        return self._credentials.merchant_id

    @merchant_id.setter
    def merchant_id(self, value: str | int) -> None:
        self._replace_credential("merchant_id", value)

    @property
    def token(self) -> str:
        return self._credentials.token

    @token.setter
    def token(self, value: str) -> None:
        self._replace_credential("token", value)

    @property
    def secret_key(self) -> str:
        return self._credentials.secret_key

    @secret_key.setter
    def secret_key(self, value: str) -> None:
        self._replace_credential("secret_key", value)

    @property
    def version(self) -> str:
        return self._credentials.version

    @version.setter
    def version(self, value: str | float) -> None:
        self._replace_credential("version", value)

    @property
    def service_url(self) -> str:
        return self._transport.endpoint.service_url

    @service_url.setter
    def service_url(self, value: str) -> None:
        self._transport.endpoint = self._transport.endpoint.model_copy(update={"service_url": value})

    @property
    def service_path(self) -> str:
        return self._transport.endpoint.service_path

    @service_path.setter
    def service_path(self, value: str) -> None:
        self._transport.endpoint = self._transport.endpoint.model_copy(update={"service_path": value})

    @property
    def strict_xml(self) -> bool:
        return self._strict_xml

    @strict_xml.setter
    def strict_xml(self, value: bool) -> None:
        self._strict_xml = value
