"""
Module for running a bounded-concurrency upload batch.

Each candidate goes through the same decision chain on one worker:

    ignore check -> read -> exclude check -> classify -> key transform
    -> key filter -> dry run -> encode -> put

and ends in exactly one Outcome. Per-file failures are recorded on the
decision and never abort the rest of the batch; the batch reports the
first failure it observed once every candidate is done.
"""
import logging
import posixpath
from concurrent.futures import Executor, Future, ThreadPoolExecutor, as_completed
from typing import Optional

from .config import UploadConfig
from .content import GZIP_ENCODING, classify, encode
from .errors import ReadError, UploadError
from .filters import accepts_key, is_excluded, is_ignored_path, transform_key
from .models import BatchResult, Outcome, UploadDecision
from .scanner import FileScanner
from .uploader import ObjectPutter, S3ObjectPutter, create_s3_client

logger = logging.getLogger(__name__)


class UploadPipeline:
    """Uploads the files of one root directory to a bucket."""

    def __init__(self, config: UploadConfig,
                 putter: Optional[ObjectPutter] = None,
                 scanner: Optional[FileScanner] = None):
        """Initialize the pipeline.

        Args:
            config: Validated run configuration
            putter: Object store boundary; an S3ObjectPutter built from
                the configuration is used when omitted
            scanner: File enumeration collaborator
        """
        self.config = config
        self.scanner = scanner or FileScanner()
        self.putter = putter or S3ObjectPutter(create_s3_client(config))

    def _log(self, level: int, message: str) -> None:
        if self.config.logging:
            logger.log(level, message)

    def _read(self, file_path: str) -> bytes:
        try:
            return (self.config.root / file_path).read_bytes()
        except OSError as e:
            raise ReadError(file_path, e.strerror or str(e)) from e

    def _fail(self, file_path: str, error: Exception,
              key: Optional[str] = None) -> UploadDecision:
        self._log(logging.ERROR, str(error))
        return UploadDecision(
            file_path=file_path,
            outcome=Outcome.FAILED,
            key=key,
            error=error
        )

    def process(self, file_path: str) -> UploadDecision:
        """Run one candidate through the decision chain.

        Args:
            file_path: Candidate path relative to the root

        Returns:
            UploadDecision in a terminal state
        """
        config = self.config

        if is_ignored_path(file_path):
            logger.debug(f"Ignoring {file_path}")
            return UploadDecision(file_path=file_path, outcome=Outcome.SKIPPED_IGNORED)

        try:
            payload = self._read(file_path)
        except ReadError as e:
            return self._fail(file_path, e)

        if is_excluded(file_path, config.excludes):
            logger.debug(f"Excluding {file_path}")
            return UploadDecision(file_path=file_path, outcome=Outcome.SKIPPED_EXCLUDED)

        content = classify(posixpath.splitext(file_path)[1])
        if content is None:
            logger.debug(f"No content type for {file_path}, skipping")
            return UploadDecision(
                file_path=file_path,
                outcome=Outcome.SKIPPED_UNRESOLVABLE_TYPE
            )

        key = transform_key(file_path, config.transform_key)
        if not accepts_key(key, config.key_filter):
            logger.debug(f"Key {key} rejected by filter")
            return UploadDecision(
                file_path=file_path,
                outcome=Outcome.SKIPPED_FILTERED,
                key=key
            )

        compress = config.compress and content.compressible
        content_encoding = GZIP_ENCODING if compress else None

        if config.dry_run:
            self._log(logging.INFO, f"Upload (dry run): {key}")
            return UploadDecision(
                file_path=file_path,
                outcome=Outcome.DRY_RUN,
                key=key,
                content_type=content.content_type,
                content_encoding=content_encoding,
                size_bytes=len(payload)
            )

        self._log(logging.INFO, f"Upload: {key}")
        try:
            body = encode(payload, compress)
            etag = self.putter.put(
                config.bucket,
                key,
                body,
                content.content_type,
                config.cache_control,
                config.acl,
                content_encoding=content_encoding
            )
        except UploadError as e:
            return self._fail(file_path, e, key=key)

        return UploadDecision(
            file_path=file_path,
            outcome=Outcome.UPLOADED,
            key=key,
            content_type=content.content_type,
            content_encoding=content_encoding,
            size_bytes=len(body),
            etag=etag
        )

    def run(self) -> BatchResult:
        """Process every candidate with at most ``concurrency`` workers.

        Returns:
            BatchResult once every candidate reached a terminal outcome
        """
        files = self.scanner.scan(self.config)
        self._log(logging.INFO, f"Bucket: {self.config.bucket}")

        result = BatchResult(total_files=len(files))
        if not files:
            return result

        with ThreadPoolExecutor(max_workers=self.config.concurrency,
                                thread_name_prefix="upload") as executor:
            future_to_file = {
                executor.submit(self.process, file_path): file_path
                for file_path in files
            }

            for future in as_completed(future_to_file):
                try:
                    decision = future.result()
                except Exception as e:
                    # raised by a user hook; the candidate fails, the batch goes on
                    file_path = future_to_file[future]
                    self._log(logging.ERROR,
                              f"Unexpected error processing {file_path}: {e}")
                    decision = UploadDecision(
                        file_path=file_path,
                        outcome=Outcome.FAILED,
                        error=e
                    )
                result.record(decision)

        self._log(
            logging.INFO,
            f"Completed {self.config.bucket}: {result.uploaded} uploaded, "
            f"{result.dry_run} dry run, {result.skipped} skipped, "
            f"{result.failed} failed of {result.total_files} files"
        )
        return result


def upload_directory(config: UploadConfig,
                     putter: Optional[ObjectPutter] = None) -> BatchResult:
    """Upload a directory and wait for the batch to finish.

    Args:
        config: Validated run configuration
        putter: Optional object store boundary

    Returns:
        BatchResult of a batch without failures

    Raises:
        UploadError: The first failure of the batch
    """
    result = UploadPipeline(config, putter=putter).run()
    result.raise_for_failure()
    return result


def submit_upload(config: UploadConfig,
                  putter: Optional[ObjectPutter] = None,
                  executor: Optional[Executor] = None) -> Future:
    """Start an upload batch in the background.

    The S3 client is created before anything is scheduled, so credential
    problems are raised here rather than through the future.

    Args:
        config: Validated run configuration
        putter: Optional object store boundary
        executor: Executor that runs the batch; a dedicated single thread
            is used when omitted

    Returns:
        Future resolving to the BatchResult, or failing with the first
        error of the batch
    """
    pipeline = UploadPipeline(config, putter=putter)

    def _run() -> BatchResult:
        result = pipeline.run()
        result.raise_for_failure()
        return result

    if executor is not None:
        return executor.submit(_run)

    own_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="upload-batch")
    try:
        return own_executor.submit(_run)
    finally:
        own_executor.shutdown(wait=False)
