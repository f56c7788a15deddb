"""XML-to-dict conversion and record normalization for report responses.

Report and maintenance actions answer with an XML document. The document is
converted to plain dicts and lists, then normalized so that callers get either
a single record dict or a list of record dicts.

XML cannot say whether a lone child element is "one record" or "a list with one
record", so the result is ambiguous by nature: a single record and the whole
top-level mapping are both returned as a bare dict. Callers must accept both a
dict and a list of dicts for the same action.

An empty element such as ``<comment/>`` becomes None, not the empty list some
XML-to-JSON converters produce.

Pass the undecoded response bytes so the parser honors the encoding named in
the XML declaration.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Any

from shareasale_client.errors import ParseError


logger = logging.getLogger(__name__)

ATTRIBUTES_KEY = "@attributes"
TEXT_KEY = "#text"


# ---------------------------------------------------------------------------
# XML text → Python dict
# ---------------------------------------------------------------------------


def xml_to_dict(xml_body: str | bytes) -> dict[str, Any]:
    """Convert an XML document into a JSON-compatible dict.

    The root element's name is dropped: the result maps the root's children
    (and attributes) directly, so ``<report><row>..</row></report>`` becomes
    ``{"row": {...}}``.

    Raises:
        ET.ParseError: If *xml_body* is not well-formed XML.
    """
    if isinstance(xml_body, str):
        xml_body = xml_body.encode("utf-8")
    root = ET.fromstring(xml_body)
    value = _element_to_value(root)
    if isinstance(value, dict):
        return value
    if value is None:
        return {}
    return {TEXT_KEY: value}


def _strip_ns(tag: str) -> str:
    """Remove namespace URI prefix: ``{http://...}Name`` → ``Name``."""
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag


def _element_to_value(element: ET.Element) -> dict[str, Any] | str | None:
    """Recursively convert one element to a dict, string, or None.

    Conversion rules:
    - Attributes → one ``@attributes`` mapping (xmlns declarations skipped).
    - Child elements → grouped by tag name. A tag seen more than once
      becomes a list; a tag seen once is a scalar.
    - Text-only leaf elements → plain string.
    - Empty elements (``<comment/>``) → None.
    - Elements with both attributes/children AND text → ``#text`` key.
    """
    result: dict[str, Any] = {}

    attributes = {
        name: value
        for name, value in element.attrib.items()
        if not (name.startswith("xmlns") or name.startswith("{"))
    }
    if attributes:
        result[ATTRIBUTES_KEY] = attributes

    children_by_tag: dict[str, list[Any]] = {}
    for child in element:
        children_by_tag.setdefault(_strip_ns(child.tag), []).append(_element_to_value(child))

    for tag, values in children_by_tag.items():
        result[tag] = values if len(values) > 1 else values[0]

    text = (element.text or "").strip()
    if text:
        if result:
            result[TEXT_KEY] = text
        else:
            return text

    if not result:
        return None

    return result


# ---------------------------------------------------------------------------
# Python dict → normalized record set
# ---------------------------------------------------------------------------


def extract_records(document: dict[str, Any], record_tag: str) -> list[Any]:
    """Pick the records out of a converted document, always as a list.

    If the value under *record_tag* is already a list (repeated sibling
    elements), that list is the record set. Otherwise (the tag is missing or
    holds a single element) the whole document is treated as the one record.
    """
    records: Any = document.get(record_tag, []) if record_tag else []
    if not isinstance(records, list) or not records:
        records = [document]
    return records


def collapse_records(records: list[Any]) -> dict[str, Any] | list[Any]:
    """Return the lone element of a one-element list, else the list itself."""
    if len(records) == 1:
        return records[0]
    return records


def normalize_records(
    xml_body: str | bytes,
    record_tag: str,
    strict: bool = False,
) -> tuple[dict[str, Any] | list[Any], list[str]]:
    """Parse *xml_body* and normalize it to a record dict or list of record dicts.

    Args:
        xml_body: Raw XML response body.
        record_tag: Tag the service nests records under.
        strict: Raise ParseError on malformed XML instead of degrading.

    Returns:
        Tuple of (records, parse_errors). On malformed XML in non-strict mode
        records is an empty list and parse_errors holds the parser messages.

    Raises:
        ParseError: If *strict* and the body is not well-formed XML.
    """
    try:
        document = xml_to_dict(xml_body)
    except ET.ParseError as e:
        messages = [str(e)]
        if strict:
            raise ParseError(messages) from e
        for message in messages:
            logger.warning("Could not parse XML response for '%s': %s", record_tag, message)
        return [], messages

    return collapse_records(extract_records(document, record_tag)), []
