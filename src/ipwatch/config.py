"""Configuration management for ipwatch.

The configuration lives in a JSON document (see ``ipwatch.store``) and is
projected into a ``Config`` record on every read. Missing keys and values of
the wrong type fall back to defaults; unknown keys are ignored.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from ipwatch.document import Document, DocumentObject
from ipwatch.errors import ConfigValueError
from ipwatch.store import DocumentStore

MIN_PORT = 1
MAX_PORT = 65535

# Written to disk the first time the config file is opened
DEFAULT_DOCUMENT: DocumentObject = {
    "emailAddress": "me@example.com",
    "emailUsername": None,
    "emailPassword": "1243124231",
    "emailSMTPHost": "smtp.example.com",
    "emailSMTPPort": 465,
    "recipientAddress": "person@example.com",
    "checkIntervalMinutes": 15,
    "ipAddress": "127.0.0.1",
    "failureCount": 0,
    "failureThreshold": 3,
    "logLevel": "INFO",
    "logFile": None,
}


@dataclass
class Config:
    """Notifier configuration."""

    email_address: str = ""
    email_username: str | None = None  # SMTP login; email_address when None
    email_password: str = ""
    email_smtp_host: str = ""
    email_smtp_port: int = 587
    recipient_address: str = ""
    check_interval_minutes: int = 5
    ip_address: str = ""  # last known public IP
    failure_count: int = 0  # sequential failed lookups
    failure_threshold: int = 3  # alert after this many failures, 0 disables
    log_level: str = "INFO"
    log_file: str | None = None

    @property
    def smtp_login(self) -> str:
        """Username used to authenticate with the SMTP server."""
        return self.email_username or self.email_address


# Config field name -> document key
FIELD_KEYS = {
    "email_address": "emailAddress",
    "email_username": "emailUsername",
    "email_password": "emailPassword",
    "email_smtp_host": "emailSMTPHost",
    "email_smtp_port": "emailSMTPPort",
    "recipient_address": "recipientAddress",
    "check_interval_minutes": "checkIntervalMinutes",
    "ip_address": "ipAddress",
    "failure_count": "failureCount",
    "failure_threshold": "failureThreshold",
    "log_level": "logLevel",
    "log_file": "logFile",
}


def get_config_path(custom_path: Path | None = None) -> Path:
    """Get the configuration file path.

    Args:
        custom_path: Override path. If None, returns default.

    Returns:
        Path to config file.
    """
    if custom_path is not None:
        return custom_path
    return Path.home() / ".config" / "ipwatch" / "config.json"


def open_config_store(path: Path | None = None) -> DocumentStore:
    """Create the document store holding the configuration."""
    return DocumentStore(get_config_path(path), default=DEFAULT_DOCUMENT)


def load_config(store: DocumentStore) -> Config:
    """Read a fresh Config from the store."""
    return document_to_config(store.load())


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _text(data: DocumentObject, key: str, default: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else default


def _optional_text(data: DocumentObject, key: str) -> str | None:
    value = data.get(key)
    return value if isinstance(value, str) else None


def _int(
    data: DocumentObject,
    key: str,
    default: int,
    minimum: int = 0,
    maximum: int | None = None,
) -> int:
    value = data.get(key)
    if not _is_int(value) or value < minimum:
        return default
    if maximum is not None and value > maximum:
        return default
    return value


def document_to_config(doc: Document) -> Config:
    """Project a document onto a Config.

    Args:
        doc: Raw document. Anything but a mapping yields all defaults.

    Returns:
        Config with defaults for missing or mistyped fields.
    """
    data: DocumentObject = doc if isinstance(doc, dict) else {}

    return Config(
        email_address=_text(data, "emailAddress", Config.email_address),
        email_username=_optional_text(data, "emailUsername"),
        email_password=_text(data, "emailPassword", Config.email_password),
        email_smtp_host=_text(data, "emailSMTPHost", Config.email_smtp_host),
        email_smtp_port=_int(
            data, "emailSMTPPort", Config.email_smtp_port, MIN_PORT, MAX_PORT
        ),
        recipient_address=_text(data, "recipientAddress", Config.recipient_address),
        check_interval_minutes=_int(
            data, "checkIntervalMinutes", Config.check_interval_minutes
        ),
        ip_address=_text(data, "ipAddress", Config.ip_address),
        failure_count=_int(data, "failureCount", Config.failure_count),
        failure_threshold=_int(data, "failureThreshold", Config.failure_threshold),
        log_level=_text(data, "logLevel", Config.log_level),
        log_file=_optional_text(data, "logFile"),
    )


def config_to_document(config: Config) -> DocumentObject:
    """Serialize a Config to its document form (known keys only)."""
    return {key: getattr(config, field_name) for field_name, key in FIELD_KEYS.items()}


def resolve_property(name: str) -> str:
    """Map a property name to its document key.

    Accepts a Config field name (``email_smtp_port``) or a document key
    (``emailSMTPPort``). Anything else is returned unchanged and treated as a
    key path by the caller.
    """
    return FIELD_KEYS.get(name, name)


def _parse_int(key: str, raw: str, minimum: int, maximum: int | None = None) -> int:
    try:
        value = int(raw.strip())
    except ValueError:
        raise ConfigValueError(f"{key} must be a whole number, got {raw!r}") from None

    if value < minimum or (maximum is not None and value > maximum):
        if maximum is None:
            raise ConfigValueError(f"{key} must be at least {minimum}, got {value}")
        raise ConfigValueError(
            f"{key} must be between {minimum} and {maximum}, got {value}"
        )
    return value


def _nullable(raw: str) -> str | None:
    return None if raw.strip().lower() in ("", "null", "none") else raw


def _json_or_text(raw: str) -> Document:
    try:
        return json.loads(raw)
    except ValueError:
        return raw


_PROPERTY_PARSERS: dict[str, Callable[[str], Document]] = {
    "emailSMTPPort": lambda raw: _parse_int("emailSMTPPort", raw, MIN_PORT, MAX_PORT),
    "checkIntervalMinutes": lambda raw: _parse_int("checkIntervalMinutes", raw, 1),
    "failureCount": lambda raw: _parse_int("failureCount", raw, 0),
    "failureThreshold": lambda raw: _parse_int("failureThreshold", raw, 0),
    "emailUsername": _nullable,
    "logFile": _nullable,
    "logLevel": lambda raw: raw.strip().upper(),
}


def coerce_property(key: str, raw: str) -> Document:
    """Convert command-line text to the value stored under ``key``.

    Numeric properties are validated; other known keys are stored as text.
    Unknown keys take the JSON value of ``raw`` when it parses, else the text.

    Raises:
        ConfigValueError: If a numeric property is not a number or is out of
            range.
    """
    parser = _PROPERTY_PARSERS.get(key)
    if parser is not None:
        return parser(raw)
    if key in FIELD_KEYS.values():
        return raw
    return _json_or_text(raw)
