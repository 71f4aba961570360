"""Binary file storage for payment slips and waiver signatures.

The booking core only persists the reference returned by ``store``.
"""

import base64
import binascii
import logging
import re
from abc import ABC, abstractmethod

from django.core.files.base import ContentFile
from django.core.files.storage import default_storage

from .exceptions import PersistenceError, ValidationError

logger = logging.getLogger(__name__)

DATA_URL_PATTERN = re.compile(r"^data:image/\w+;base64,")


class BaseFileStore(ABC):
    """Abstract file store."""

    @abstractmethod
    def store(self, name: str, content) -> str:
        """Persist ``content`` under a name derived from ``name``; return its URL."""
        raise NotImplementedError


class DefaultStorageFileStore(BaseFileStore):
    """File store backed by Django's ``default_storage``."""

    def store(self, name: str, content) -> str:
        if not hasattr(content, "read"):
            content = ContentFile(content)
        try:
            saved_name = default_storage.save(name, content)
            return default_storage.url(saved_name)
        except OSError as exc:
            logger.error("Failed to store file %s: %s", name, exc)
            raise PersistenceError(f"Failed to store file {name}: {exc}") from exc


def decode_image_data(data, field: str = "signature", label: str = "Signature image") -> bytes:
    """Accept raw bytes or a ``data:image/...;base64,`` URL and return bytes.

    Raises:
        ValidationError: If the data is empty or not valid base64
    """
    if isinstance(data, bytes):
        raw = data
    else:
        encoded = DATA_URL_PATTERN.sub("", (data or "").strip())
        try:
            raw = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValidationError(f"{label} is not valid base64", field=field) from exc
    if not raw:
        raise ValidationError(f"{label} is required", field=field)
    return raw
