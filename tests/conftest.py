"""
Test fixtures for the bucket uploader.
"""
import threading
import time
from dataclasses import dataclass
from typing import Optional

import pytest
import boto3
from moto import mock_aws as moto_mock_aws

from bucket_uploader.config import UploadConfig
from bucket_uploader.errors import PutError
from bucket_uploader.uploader import ObjectPutter

TEST_BUCKET = "test-bucket"
TEST_REGION = "us-east-1"


@dataclass
class PutCall:
    bucket: str
    key: str
    payload: bytes
    content_type: str
    cache_control: str
    acl: str
    content_encoding: Optional[str]


class RecordingPutter(ObjectPutter):
    """In-memory putter that records calls and tracks concurrency."""

    def __init__(self, fail_keys=(), delay: float = 0.0):
        self.calls = []
        self.fail_keys = set(fail_keys)
        self.delay = delay
        self.in_flight = 0
        self.max_in_flight = 0
        self._lock = threading.Lock()

    def put(self, bucket, key, payload, content_type, cache_control, acl,
            content_encoding=None):
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            with self._lock:
                self.calls.append(PutCall(bucket, key, payload, content_type,
                                          cache_control, acl, content_encoding))
            if key in self.fail_keys:
                raise PutError(key, "Access Denied", code="AccessDenied")
            return '"test-etag"'
        finally:
            with self._lock:
                self.in_flight -= 1

    @property
    def keys(self):
        return sorted(call.key for call in self.calls)

    def call_for(self, key):
        return next(call for call in self.calls if call.key == key)


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch, tmp_path):
    """Keep boto3 away from real credentials and config files."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", TEST_REGION)
    monkeypatch.setenv("AWS_CONFIG_FILE", str(tmp_path / "aws-config"))
    monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(tmp_path / "aws-credentials"))
    monkeypatch.delenv("AWS_PROFILE", raising=False)


@pytest.fixture
def tmp_upload_dir(tmp_path):
    """Create a temporary directory for test files."""
    upload_dir = tmp_path / "uploads"
    upload_dir.mkdir()
    return upload_dir


@pytest.fixture
def write_files(tmp_upload_dir):
    """Write a {relative path: content} mapping below the upload dir."""
    def _write(files):
        for rel_path, content in files.items():
            file_path = tmp_upload_dir / rel_path
            file_path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                file_path.write_bytes(content)
            else:
                file_path.write_text(content)
        return tmp_upload_dir
    return _write


@pytest.fixture
def make_config(tmp_upload_dir):
    """Build an UploadConfig for the upload dir with test credentials."""
    def _make(**overrides):
        values = dict(
            root=tmp_upload_dir,
            bucket=TEST_BUCKET,
            access_key_id="testing",
            secret_access_key="testing",
            region=TEST_REGION,
        )
        values.update(overrides)
        return UploadConfig(**values)
    return _make


@pytest.fixture
def putter():
    return RecordingPutter()


@pytest.fixture
def putter_factory():
    return RecordingPutter


@pytest.fixture
def mock_aws():
    """Mock S3 client using moto."""
    with moto_mock_aws():
        s3 = boto3.client('s3', region_name=TEST_REGION)
        s3.create_bucket(Bucket=TEST_BUCKET)
        yield s3
