"""
Module for putting single objects into S3.
"""
import logging
from abc import ABC, abstractmethod
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, ProfileNotFound

from .config import UploadConfig
from .errors import ConfigurationError, PutError

logger = logging.getLogger(__name__)


def create_s3_client(config: UploadConfig):
    """Create the S3 client shared by every worker of a run.

    An explicit key pair takes precedence over a credentials object. The
    client is built from its own session so no process-wide credential
    state is touched.

    Args:
        config: Run configuration

    Returns:
        boto3 S3 client

    Raises:
        ConfigurationError: If the credentials cannot be resolved
    """
    session_kwargs = {}
    if config.has_key_pair:
        session_kwargs = {
            'aws_access_key_id': config.access_key_id,
            'aws_secret_access_key': config.secret_access_key,
        }
    elif config.credentials is not None:
        creds = config.credentials
        if creds.profile_name:
            session_kwargs['profile_name'] = creds.profile_name
        if creds.access_key_id and creds.secret_access_key:
            session_kwargs['aws_access_key_id'] = creds.access_key_id
            session_kwargs['aws_secret_access_key'] = creds.secret_access_key
            if creds.session_token:
                session_kwargs['aws_session_token'] = creds.session_token

    logger.debug(f"Creating S3 client for region {config.region}")
    try:
        session = boto3.Session(region_name=config.region, **session_kwargs)
        return session.client(
            's3',
            region_name=config.region,
            config=Config(signature_version='s3v4')
        )
    except ProfileNotFound as e:
        raise ConfigurationError(str(e)) from e


class ObjectPutter(ABC):
    """Stores one object in a remote bucket."""

    @abstractmethod
    def put(self, bucket: str, key: str, payload: bytes, content_type: str,
            cache_control: str, acl: str,
            content_encoding: Optional[str] = None) -> Optional[str]:
        """Store a single object.

        Returns:
            ETag reported by the store, if any

        Raises:
            PutError: If the store rejects the object or the request fails
        """


class S3ObjectPutter(ObjectPutter):
    """Puts objects into S3 with a single PutObject call each."""

    def __init__(self, s3_client):
        """Initialize the putter.

        Args:
            s3_client: boto3 S3 client, shared across threads
        """
        self.s3_client = s3_client

    def put(self, bucket: str, key: str, payload: bytes, content_type: str,
            cache_control: str, acl: str,
            content_encoding: Optional[str] = None) -> Optional[str]:
        params = {
            'Bucket': bucket,
            'Key': key,
            'Body': payload,
            'ContentType': content_type,
            'CacheControl': cache_control,
            'ACL': acl,
        }
        if content_encoding:
            params['ContentEncoding'] = content_encoding
            params['Metadata'] = {'Vary': 'Accept-Encoding'}

        try:
            response = self.s3_client.put_object(**params)
        except ClientError as e:
            error = e.response.get('Error', {})
            raise PutError(
                key,
                error.get('Message') or str(e),
                code=error.get('Code')
            ) from e
        except BotoCoreError as e:
            raise PutError(key, str(e)) from e

        return response.get('ETag') if isinstance(response, dict) else None
