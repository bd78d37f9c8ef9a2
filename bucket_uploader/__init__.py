from .config import StorageCredentials, UploadConfig, config_from_mapping, load_config
from .errors import ConfigurationError, EncodingError, PutError, ReadError, UploadError
from .models import BatchResult, Outcome, UploadDecision
from .pipeline import UploadPipeline, submit_upload, upload_directory
from .scanner import FileScanner
from .uploader import ObjectPutter, S3ObjectPutter

__version__ = "0.1.0"

__all__ = [
    "UploadPipeline",
    "upload_directory",
    "submit_upload",
    "UploadConfig",
    "StorageCredentials",
    "config_from_mapping",
    "load_config",
    "BatchResult",
    "Outcome",
    "UploadDecision",
    "FileScanner",
    "ObjectPutter",
    "S3ObjectPutter",
    "UploadError",
    "ConfigurationError",
    "ReadError",
    "EncodingError",
    "PutError",
]
