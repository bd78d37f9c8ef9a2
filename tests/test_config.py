"""
Tests for run configuration loading and validation.
"""
import dataclasses
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from bucket_uploader.config import (
    DEFAULT_INCLUDES,
    StorageCredentials,
    UploadConfig,
    config_from_mapping,
    load_config,
)
from bucket_uploader.errors import ConfigurationError
from bucket_uploader.scanner import FileScanner


def test_defaults(make_config, tmp_upload_dir):
    config = make_config()

    assert config.root == tmp_upload_dir
    assert config.region == "us-east-1"
    assert config.includes == DEFAULT_INCLUDES
    assert config.excludes == ()
    assert config.concurrency == 5
    assert config.cache_control == "max-age=300"
    assert config.acl == "public-read"
    assert config.logging is True
    assert config.compress is False
    assert config.dry_run is False
    assert config.transform_key is None
    assert config.key_filter is None


def test_default_region(tmp_upload_dir):
    config = UploadConfig(root=tmp_upload_dir, bucket="b",
                          access_key_id="k", secret_access_key="s")
    assert config.region == "ap-northeast-1"


def test_missing_root():
    with pytest.raises(ConfigurationError, match='"root"'):
        UploadConfig(bucket="b", access_key_id="k", secret_access_key="s")


def test_missing_bucket_fails_before_enumeration(tmp_upload_dir):
    """Test that a missing bucket is reported before any file is listed."""
    with patch.object(FileScanner, "list_files") as mock_list:
        with pytest.raises(ConfigurationError, match='"bucket"'):
            UploadConfig(root=tmp_upload_dir, access_key_id="k", secret_access_key="s")

    mock_list.assert_not_called()


def test_missing_credentials(tmp_upload_dir):
    with pytest.raises(ConfigurationError, match="credentials"):
        UploadConfig(root=tmp_upload_dir, bucket="b")

    with pytest.raises(ConfigurationError, match="credentials"):
        UploadConfig(root=tmp_upload_dir, bucket="b", access_key_id="k")


def test_credentials_object_is_enough(tmp_upload_dir):
    config = UploadConfig(root=tmp_upload_dir, bucket="b",
                          credentials=StorageCredentials(profile_name="default"))
    assert not config.has_key_pair


@pytest.mark.parametrize("concurrency", [0, -1, True, "5", 2.5])
def test_invalid_concurrency(make_config, concurrency):
    with pytest.raises(ConfigurationError, match="concurrency"):
        make_config(concurrency=concurrency)


def test_root_must_be_a_directory(make_config, tmp_upload_dir):
    file_path = tmp_upload_dir / "a.txt"
    file_path.write_text("a")

    with pytest.raises(ConfigurationError):
        make_config(root=file_path)
    with pytest.raises(ConfigurationError):
        make_config(root=tmp_upload_dir / "missing")


def test_configuration_error_is_value_error(tmp_upload_dir):
    with pytest.raises(ValueError):
        UploadConfig(root=tmp_upload_dir)


def test_patterns_are_normalized(make_config, tmp_upload_dir):
    config = make_config(root=str(tmp_upload_dir), includes="*.html", excludes=["*.log"])

    assert config.root == tmp_upload_dir
    assert config.includes == ("*.html",)
    assert config.excludes == ("*.log",)


def test_empty_includes_fall_back_to_default(make_config):
    assert make_config(includes=[]).includes == DEFAULT_INCLUDES


def test_config_is_immutable(make_config):
    config = make_config()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.bucket = "other"


def test_config_from_mapping(tmp_upload_dir):
    transform = str.upper
    config = config_from_mapping(
        {
            "root": str(tmp_upload_dir),
            "bucket": "site-bucket",
            "profile": "deploy",
            "compress": True,
            "concurrency": 10,
            "excludes": ["*.map"],
        },
        transform_key=transform,
    )

    assert config.bucket == "site-bucket"
    assert config.credentials == StorageCredentials(profile_name="deploy")
    assert config.compress
    assert config.concurrency == 10
    assert config.excludes == ("*.map",)
    assert config.transform_key is transform


def test_config_from_mapping_expands_credentials(tmp_upload_dir):
    config = config_from_mapping({
        "root": str(tmp_upload_dir),
        "bucket": "b",
        "credentials": {"access_key_id": "k", "secret_access_key": "s"},
    })
    assert config.credentials == StorageCredentials(access_key_id="k", secret_access_key="s")


def test_config_from_mapping_rejects_unknown_keys(tmp_upload_dir):
    with pytest.raises(ConfigurationError, match="Bucket"):
        config_from_mapping({"root": str(tmp_upload_dir), "Bucket": "b"})


def test_config_from_mapping_rejects_bad_credentials(tmp_upload_dir):
    with pytest.raises(ConfigurationError):
        config_from_mapping({
            "root": str(tmp_upload_dir),
            "bucket": "b",
            "credentials": {"token": "x"},
        })


def test_load_config(tmp_path, tmp_upload_dir):
    config_file = tmp_path / "upload.json"
    config_file.write_text(json.dumps({
        "root": str(tmp_upload_dir),
        "bucket": "site-bucket",
        "access_key_id": "k",
        "secret_access_key": "s",
        "includes": ["**/*.html", "**/*.css"],
        "dry_run": True,
    }))

    config = load_config(config_file, key_filter=bool)

    assert config.bucket == "site-bucket"
    assert config.includes == ("**/*.html", "**/*.css")
    assert config.dry_run
    assert config.key_filter is bool


def test_load_config_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="Error reading"):
        load_config(tmp_path / "missing.json")


def test_load_config_invalid_json(tmp_path):
    config_file = tmp_path / "upload.json"
    config_file.write_text("{not json")

    with pytest.raises(ConfigurationError, match="Invalid JSON"):
        load_config(config_file)


def test_load_config_requires_object(tmp_path):
    config_file = tmp_path / "upload.json"
    config_file.write_text("[]")

    with pytest.raises(ConfigurationError, match="JSON object"):
        load_config(Path(config_file))
