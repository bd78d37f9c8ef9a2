"""
Exceptions raised while configuring and running an upload batch.
"""
from typing import Optional


class UploadError(Exception):
    """Base exception for upload failures."""


class ConfigurationError(UploadError, ValueError):
    """Raised when a required setting is missing or invalid."""


class ReadError(UploadError):
    """Raised when a candidate file cannot be read from disk."""

    def __init__(self, file_path: str, reason: str):
        super().__init__(f"Error reading {file_path}: {reason}")
        self.file_path = file_path


class EncodingError(UploadError):
    """Raised when a payload cannot be compressed."""

    def __init__(self, reason: str, file_path: Optional[str] = None):
        target = file_path or "payload"
        super().__init__(f"Error compressing {target}: {reason}")
        self.file_path = file_path


class PutError(UploadError):
    """Raised when the object store rejects a put or the request fails."""

    def __init__(self, key: str, reason: str, code: Optional[str] = None):
        super().__init__(f"Error uploading {key}: {reason}")
        self.key = key
        self.code = code
