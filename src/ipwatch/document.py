"""JSON document values and their on-disk text form.

A document is the untyped tree persisted by the store:

- None, bool, int, float, str
- list of documents
- dict of str -> document
"""

import json
import math
from typing import TypeAlias

from ipwatch.errors import InvalidDocumentError, ParseError

__all__ = [
    "Document",
    "DocumentArray",
    "DocumentObject",
    "dumps",
    "loads",
    "validate_document",
]

Scalar: TypeAlias = str | int | float | bool | None
Document: TypeAlias = Scalar | list["Document"] | dict[str, "Document"]
DocumentObject: TypeAlias = dict[str, Document]
DocumentArray: TypeAlias = list[Document]


def validate_document(value: object, where: str = "$") -> None:
    """Check that a value fits the document grammar.

    Args:
        value: Value to check.
        where: Location of value, used in error messages.

    Raises:
        InvalidDocumentError: On the first value that is not a document.
    """
    if value is None or isinstance(value, (str, bool, int)):
        return
    if isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidDocumentError(f"{where}: non-finite number {value!r}")
        return
    if isinstance(value, list):
        for i, item in enumerate(value):
            validate_document(item, f"{where}[{i}]")
        return
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise InvalidDocumentError(f"{where}: non-string key {key!r}")
            validate_document(item, f"{where}.{key}")
        return
    raise InvalidDocumentError(f"{where}: unsupported type {type(value).__name__}")


def dumps(document: Document) -> str:
    """Serialize a document to its pretty-printed, human-editable form."""
    validate_document(document)
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def loads(text: str) -> Document:
    """Parse document text.

    Raises:
        ParseError: If the text is not well-formed JSON.
    """
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except (json.JSONDecodeError, ValueError) as e:
        raise ParseError(f"Malformed document: {e}") from e


def _reject_constant(name: str) -> None:
    raise ValueError(f"non-standard constant {name}")
