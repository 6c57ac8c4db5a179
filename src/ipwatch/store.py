"""JSON document store backed by a single file.

The file on disk is the only source of truth: every operation loads a fresh
copy, and mutating helpers write the whole document back. Nothing is locked
between load and save, so a concurrent writer in another process can be
overwritten.
"""

import copy
import logging
import os
from pathlib import Path

from ipwatch import document as codec
from ipwatch.document import Document
from ipwatch.errors import DocumentIOError, InvalidDocumentError, ParseError, StorageError
from ipwatch.paths import apply_path, read_path

logger = logging.getLogger(__name__)

__all__ = [
    "DocumentStore",
    "StorageError",
]


class DocumentStore:
    """File-backed JSON document with lazy initialization.

    Attributes:
        path: Location of the document file.
    """

    def __init__(self, path: Path | str, default: Document = None) -> None:
        """Initialize store.

        Args:
            path: Path to the JSON file. Not touched until first use.
            default: Document written when the file does not exist yet.
                Defaults to an empty mapping.
        """
        self.path = Path(path).expanduser()
        self._default = {} if default is None else copy.deepcopy(default)

    @property
    def default(self) -> Document:
        """A fresh copy of the initial document."""
        return copy.deepcopy(self._default)

    def exists(self) -> bool:
        """Whether the document file exists."""
        return self.path.exists()

    def load(self) -> Document:
        """Load the document, creating it with the default if missing.

        An empty (or whitespace-only) file is treated as not yet populated
        and loads as an empty mapping.

        Returns:
            The parsed document.

        Raises:
            DocumentIOError: If the file cannot be read or created.
            ParseError: If the file holds malformed JSON.
        """
        if not self.path.exists():
            return self.initialize()

        try:
            raw = self.path.read_bytes()
        except OSError as e:
            raise DocumentIOError(f"Failed to read {self.path}: {e}") from e

        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"{self.path} is not UTF-8 text: {e}") from e

        if not text.strip():
            logger.debug(f"Document file {self.path} is empty")
            return {}

        return codec.loads(text)

    def initialize(self) -> Document:
        """Write the default document and load it back.

        Raises:
            DocumentIOError: If the directory or file cannot be created.
        """
        logger.info(f"Creating default document at {self.path}")
        self.save(self._default)
        return self.load()

    def save(self, document: Document) -> None:
        """Replace the file contents with ``document``.

        The text goes to a temporary sibling file that is then renamed over
        the target, so readers see either the old or the new document.

        Raises:
            InvalidDocumentError: If the value is not a JSON document.
            DocumentIOError: If writing fails. The file is left unchanged.
        """
        text = codec.dumps(document)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DocumentIOError(f"Failed to create {self.path.parent}: {e}") from e

        temp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            # Owner read/write only, the document holds a password
            fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.path)
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            raise DocumentIOError(f"Failed to write {self.path}: {e}") from e

        logger.debug(f"Saved document to {self.path}")

    def set_key(self, key: str, value: Document) -> Document:
        """Set one top-level key and save.

        Returns:
            The saved document.

        Raises:
            InvalidDocumentError: If the stored document is not a mapping.
        """
        document = self.load()
        if document is None:
            document = {}
        if not isinstance(document, dict):
            raise InvalidDocumentError(f"{self.path} does not hold a JSON object")
        document[key] = value
        self.save(document)
        return document

    def set_whole(self, document: Document) -> None:
        """Replace the whole document."""
        self.save(document)

    def set_path(self, path: str, value: Document) -> Document:
        """Set a nested value by key path and save.

        Raises:
            InvalidPathError: If the path is malformed or does not fit the
                document shape. Nothing is written in that case.

        Returns:
            The saved document.
        """
        document = apply_path(self.load(), path, value)
        self.save(document)
        return document

    def get_path(self, path: str, default: Document = None) -> Document:
        """Read a nested value by key path."""
        return read_path(self.load(), path, default)

    def reset(self) -> Document:
        """Overwrite the file with the default document."""
        logger.info(f"Resetting document at {self.path}")
        self.save(self._default)
        return self.default
