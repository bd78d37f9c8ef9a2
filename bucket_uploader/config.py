"""
Module for building and validating upload run configuration.
"""
import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple, Union

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

KeyTransform = Callable[[str], str]
KeyFilter = Callable[[str], bool]

DEFAULT_REGION = "ap-northeast-1"
DEFAULT_CONCURRENCY = 5
DEFAULT_CACHE_CONTROL = "max-age=300"
DEFAULT_ACL = "public-read"
DEFAULT_INCLUDES: Tuple[str, ...] = ("**/*",)


@dataclass(frozen=True)
class StorageCredentials:
    """Credentials for the object store.

    Either a named profile from the shared AWS config files, or an
    explicit key pair (optionally with a session token).
    """
    profile_name: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    session_token: Optional[str] = None


def _as_patterns(value: Union[str, Sequence[str], None]) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


@dataclass(frozen=True)
class UploadConfig:
    """Immutable configuration for one upload run."""
    root: Optional[Path] = None
    bucket: Optional[str] = None
    credentials: Optional[StorageCredentials] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    region: str = DEFAULT_REGION
    includes: Tuple[str, ...] = DEFAULT_INCLUDES
    excludes: Tuple[str, ...] = ()
    compress: bool = False
    concurrency: int = DEFAULT_CONCURRENCY
    dry_run: bool = False
    logging: bool = True
    acl: str = DEFAULT_ACL
    cache_control: str = DEFAULT_CACHE_CONTROL
    transform_key: Optional[KeyTransform] = None
    key_filter: Optional[KeyFilter] = None

    def __post_init__(self):
        """Normalize pattern fields and validate required settings."""
        if not self.root:
            raise ConfigurationError('"root" is a required setting')
        if not self.bucket:
            raise ConfigurationError('"bucket" is a required setting')
        if self.credentials is None and not (self.access_key_id and self.secret_access_key):
            raise ConfigurationError(
                '"credentials" or "access_key_id" / "secret_access_key" is a required setting'
            )
        if (isinstance(self.concurrency, bool) or not isinstance(self.concurrency, int)
                or self.concurrency < 1):
            raise ConfigurationError(
                f"concurrency must be a positive integer, got {self.concurrency!r}"
            )

        # frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "root", Path(self.root))
        object.__setattr__(self, "includes", _as_patterns(self.includes) or DEFAULT_INCLUDES)
        object.__setattr__(self, "excludes", _as_patterns(self.excludes))

        if not self.root.is_dir():
            raise ConfigurationError(f"Root directory does not exist: {self.root}")

    @property
    def has_key_pair(self) -> bool:
        return bool(self.access_key_id and self.secret_access_key)


def config_from_mapping(data: Mapping[str, Any], **overrides: Any) -> UploadConfig:
    """Build an UploadConfig from a plain mapping.

    Args:
        data: Settings keyed by UploadConfig field name. A ``profile`` key
            is shorthand for ``StorageCredentials(profile_name=...)`` and a
            ``credentials`` mapping is expanded into StorageCredentials.
        **overrides: Values that win over ``data``, typically the key
            transform and key filter hooks

    Returns:
        Validated UploadConfig

    Raises:
        ConfigurationError: If a key is unknown or a setting is invalid
    """
    values: Dict[str, Any] = dict(data)
    values.update(overrides)

    profile = values.pop("profile", None)
    credentials = values.get("credentials")
    if isinstance(credentials, Mapping):
        try:
            values["credentials"] = StorageCredentials(**credentials)
        except TypeError as e:
            raise ConfigurationError(f"Invalid credentials settings: {e}") from e
    if profile and values.get("credentials") is None:
        values["credentials"] = StorageCredentials(profile_name=profile)

    known = {f.name for f in fields(UploadConfig)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")

    return UploadConfig(**values)


def load_config(config_file: Path, **overrides: Any) -> UploadConfig:
    """Load configuration from a JSON file.

    Args:
        config_file: Path to config file
        **overrides: Values that win over the file contents

    Returns:
        Validated UploadConfig
    """
    try:
        with open(config_file) as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Error reading config file {config_file}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in config file {config_file}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_file} must contain a JSON object")

    logger.debug(f"Loaded configuration from {config_file}")
    return config_from_mapping(data, **overrides)
