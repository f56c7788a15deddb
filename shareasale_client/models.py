"""Internal data models for shareasale-client.

All models use Pydantic v2. Per-call models (CallContext, RawResponse,
CallResult) are created fresh for every request and never stored on the client.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator


DEFAULT_VERSION = "3.0"
DEFAULT_SERVICE_URL = "https://api.shareasale.com"
DEFAULT_SERVICE_PATH = "/w.cfm"
DEFAULT_TIMEOUT = 30.0


# =============================================================================
# Credentials and Endpoint
# =============================================================================


class Credentials(BaseModel):
    """Merchant credentials sent with every call.

    Frozen: the client swaps in a new instance when a field is changed, so a
    call that already took a snapshot is unaffected.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, coerce_numbers_to_str=True)

    merchant_id: str = Field(default="", description="ShareASale merchant ID (merchantID)")
    token: str = Field(default="", description="API token")
    secret_key: str = Field(default="", repr=False, description="API secret key, used only for signing")
    version: str = Field(default=DEFAULT_VERSION, description="API protocol version")


class ServiceEndpoint(BaseModel):
    """Where requests are sent."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    service_url: str = Field(default=DEFAULT_SERVICE_URL, description="Scheme and host")
    service_path: str = Field(default=DEFAULT_SERVICE_PATH, description="Path of the generic action endpoint")
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Request timeout in seconds")

    @property
    def url(self) -> str:
        return self.service_url + self.service_path


# =============================================================================
# Actions
# =============================================================================


class ActionCategory(str, Enum):
    """Catalog an action belongs to. Decides how the response is interpreted."""

    TRANSACTION = "transaction"  # plain-text response
    REPORT = "report"  # XML response
    MAINTENANCE = "maintenance"  # XML response


class ActionDescriptor(BaseModel):
    """A resolved action: canonical wire name, category, and XML record tag.

    record_tag is empty for transaction actions and equal to the name otherwise.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(description="Canonical action name, sent as the 'action' parameter")
    category: ActionCategory = Field(description="Catalog the action was found in")
    record_tag: str = Field(default="", description="XML record tag, empty for text responses")

    @property
    def returns_xml(self) -> bool:
        return bool(self.record_tag)

    @model_validator(mode="after")
    def check_record_tag(self) -> Self:
        if self.category == ActionCategory.TRANSACTION and self.record_tag:
            raise ValueError("transaction actions have no record tag")
        if self.category != ActionCategory.TRANSACTION and self.record_tag != self.name:
            raise ValueError("record tag of report and maintenance actions must equal the name")
        return self


# =============================================================================
# Per-call Models
# =============================================================================


class CallContext(BaseModel):
    """Diagnostics for one call: what was signed and sent.

    The signing secret is never stored here, only the resulting hash.
    """

    model_config = ConfigDict(extra="forbid")

    action: str = Field(description="Action name that was signed")
    timestamp: str = Field(description="RFC 1123 timestamp sent in x-ShareASale-Date")
    signature: str = Field(description="Hex SHA-256 sent in x-ShareASale-Authentication")
    url: str = Field(description="Full request URL without query string")
    query: dict[str, Any] = Field(default_factory=dict, description="Query parameters sent")
    headers: dict[str, str] = Field(default_factory=dict, description="Request headers sent")


class RawResponse(BaseModel):
    """One HTTP response from the service. Header keys are lowercase."""

    model_config = ConfigDict(extra="forbid")

    status_code: int = Field(description="HTTP status code")
    reason_phrase: str = Field(default="", description="HTTP reason phrase")
    headers: dict[str, str] = Field(default_factory=dict, description="Response headers")
    body: str = Field(default="", description="Response body as text")
    content: bytes = Field(default=b"", description="Response body as received, before charset decoding")
    elapsed_ms: float = Field(default=0.0, description="Response time in milliseconds")


class CallResult(BaseModel):
    """Outcome of one action invocation with its diagnostics.

    records is a dict or list of dicts for XML actions, and the trimmed body
    text for transaction actions.
    """

    model_config = ConfigDict(extra="forbid")

    action: ActionDescriptor = Field(description="The resolved action")
    context: CallContext = Field(description="What was signed and sent")
    response: RawResponse = Field(description="What came back")
    records: Any = Field(default=None, description="Normalized record set or trimmed text")
    parse_errors: list[str] = Field(
        default_factory=list, description="XML parser diagnostics (empty on success)"
    )


# =============================================================================
# Runtime Configuration Models
# =============================================================================


class ClientConfig(BaseModel):
    """Top-level client configuration file structure."""

    model_config = ConfigDict(extra="forbid", coerce_numbers_to_str=True)

    merchant_id: str = Field(description="ShareASale merchant ID")
    token: str = Field(description="API token (supports ${ENV_VAR} substitution)")
    secret_key: str = Field(repr=False, description="API secret key (supports ${ENV_VAR} substitution)")
    version: str = Field(default=DEFAULT_VERSION, description="API protocol version")
    service_url: str = Field(default=DEFAULT_SERVICE_URL, description="Scheme and host")
    service_path: str = Field(default=DEFAULT_SERVICE_PATH, description="Action endpoint path")
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Request timeout in seconds")
    strict_xml: bool = Field(
        default=False, description="Raise ParseError instead of returning an empty result"
    )
