"""Request Builder - Assembles the flat query parameter set for one call.

Merge order, later keys win: base credentials, XML format flags, the action
name, then caller options. Caller options therefore override everything,
including ``action`` and the format flags.
"""

from __future__ import annotations

from typing import Any, Mapping

from shareasale_client.errors import ConfigError
from shareasale_client.models import ActionDescriptor, Credentials


XML_FORMAT_PARAMETERS: dict[str, Any] = {"XMLFormat": 1, "format": "xml"}


def default_parameters(credentials: Credentials) -> dict[str, Any]:
    """Base parameters sent with every action.

    Raises:
        ConfigError: If version, merchant ID, or token is empty.
    """
    missing = [
        field
        for field, value in (
            ("version", credentials.version),
            ("merchant_id", credentials.merchant_id),
            ("token", credentials.token),
        )
        if not value
    ]
    if missing:
        raise ConfigError(f"Required parameter is not set: {', '.join(missing)}")

    return {
        "version": credentials.version,
        "merchantID": credentials.merchant_id,
        "token": credentials.token,
    }


def build_parameters(
    credentials: Credentials,
    action: ActionDescriptor,
    options: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Merge base parameters, format flags, action name, and caller options.

    Option values are passed through unvalidated.
    """
    parameters = default_parameters(credentials)
    if action.record_tag:
        parameters.update(XML_FORMAT_PARAMETERS)
    parameters["action"] = action.name
    if options:
        parameters.update(options)
    return parameters


def requests_xml(parameters: Mapping[str, Any]) -> bool:
    """True if the parameter set asks the service for an XML body."""
    return str(parameters.get("format", "")) == "xml"
