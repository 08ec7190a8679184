"""Azure Blob Storage implementation of Bucket.

Uses ETags for optimistic concurrency control on the bucket attribute
record, providing lock-free concurrent updates.
"""

import io
import json
import logging
import os
from typing import BinaryIO

from azure.core import MatchConditions
from azure.core.exceptions import (
    AzureError,
    ResourceExistsError,
    ResourceModifiedError,
    ResourceNotFoundError,
)
from azure.storage.blob import BlobServiceClient

from ...errors import BlobNotFoundError, ConfigError, MetadataLimitError, StoreError
from .bucket import DEFAULT_MAX_ATTRIBUTES, BlobSink, VersionToken

logger = logging.getLogger(__name__)

# Blob keys written by groups always contain "/", so this cannot collide.
ATTRS_BLOB = ".bucket-attrs"


class AzureBucket:
    """Azure container used as a bucket.

    Container metadata only supports If-Modified-Since preconditions, which
    are second-granular and cannot detect two updates in the same second.
    The attribute record is therefore kept in a reserved blob, where ETags
    give an exact Compare-And-Swap.
    """

    def __init__(
        self,
        container: str = "atomicblob",
        connection_string: str | None = None,
        max_attributes: int = DEFAULT_MAX_ATTRIBUTES,
        client: BlobServiceClient | None = None,
    ):
        """Initialize Azure bucket.

        Args:
            container: Blob container name (created if doesn't exist)
            connection_string: Optional explicit connection string.
                If not provided, uses AZURE_STORAGE_CONNECTION_STRING env var.
            max_attributes: Attribute count ceiling for the record
            client: Pre-built service client (overrides connection_string)
        """
        self.container = container
        self.max_attributes = max_attributes
        if client is None:
            conn_str = connection_string or os.environ.get("AZURE_STORAGE_CONNECTION_STRING")
            if not conn_str:
                raise ConfigError(
                    "Azure storage connection not found. Either:\n"
                    "1. Pass connection_string parameter\n"
                    "2. Set AZURE_STORAGE_CONNECTION_STRING environment variable"
                )
            client = BlobServiceClient.from_connection_string(conn_str)
        self.client = client
        self._ensure_container()

    def _ensure_container(self) -> None:
        """Ensure the container exists."""
        try:
            container_client = self.client.get_container_client(self.container)
            if not container_client.exists():
                logger.info(f"Creating container: {self.container}")
                container_client.create_container()
        except ResourceExistsError:
            # Created concurrently
            pass
        except AzureError as e:
            raise StoreError(f"Container check for {self.container} failed: {e}") from e

    def _blob(self, key: str):
        return self.client.get_blob_client(self.container, key)

    def open_reader(self, key: str) -> BinaryIO:
        try:
            return io.BytesIO(self._blob(key).download_blob().readall())
        except ResourceNotFoundError:
            raise BlobNotFoundError(key)
        except AzureError as e:
            raise StoreError(f"Failed to get {key}: {e}") from e

    def open_writer(self, key: str) -> BlobSink:
        return BlobSink(key, self._upload)

    def _upload(self, key: str, data: bytes) -> None:
        try:
            self._blob(key).upload_blob(data, overwrite=True)
            logger.debug(f"Uploaded {len(data)} bytes to {key}")
        except AzureError as e:
            raise StoreError(f"Failed to upload {key}: {e}") from e

    def delete(self, key: str) -> bool:
        try:
            self._blob(key).delete_blob()
            logger.debug(f"Deleted {key}")
            return True
        except ResourceNotFoundError:
            logger.debug(f"Key {key} not found for deletion")
            return False
        except AzureError as e:
            raise StoreError(f"Failed to delete {key}: {e}") from e

    def get_metadata(self) -> tuple[dict[str, str], VersionToken]:
        """Get the attribute record and its ETag version."""
        try:
            downloader = self._blob(ATTRS_BLOB).download_blob()
            content = downloader.readall()
            etag = downloader.properties.etag
        except ResourceNotFoundError:
            return {}, VersionToken(None)
        except AzureError as e:
            raise StoreError(f"Failed to get bucket attributes: {e}") from e

        try:
            attrs = json.loads(content.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise StoreError(f"Corrupt bucket attributes in {self.container}: {e}") from e
        return dict(attrs), VersionToken(etag)

    def update_metadata(self, attrs: dict[str, str], version: VersionToken) -> bool:
        """Replace the attribute record if the ETag matches (CAS operation).

        A None version means the record must not exist yet.
        """
        if len(attrs) > self.max_attributes:
            raise MetadataLimitError(
                f"{len(attrs)} attributes exceeds bucket limit of {self.max_attributes}"
            )
        body = json.dumps(attrs).encode("utf-8")
        blob_client = self._blob(ATTRS_BLOB)
        try:
            if version.value is None:
                blob_client.upload_blob(body, overwrite=False, content_type="application/json")
            else:
                blob_client.upload_blob(
                    body,
                    overwrite=True,
                    etag=version.value,
                    match_condition=MatchConditions.IfNotModified,
                    content_type="application/json",
                )
            logger.debug(f"Updated bucket attributes with CAS (etag: {version.value})")
            return True

        except (ResourceModifiedError, ResourceExistsError):
            # Expected when concurrent update happens
            logger.debug(f"CAS conflict on bucket attributes (etag: {version.value})")
            return False
        except ResourceNotFoundError:
            # Record was deleted between get and put
            logger.debug("Bucket attributes not found for update")
            return False
        except AzureError as e:
            raise StoreError(f"Failed to update bucket attributes: {e}") from e

    def list_keys(self, prefix: str = "") -> list[str]:
        """List all blob names with given prefix."""
        try:
            container_client = self.client.get_container_client(self.container)
            if prefix:
                blobs = container_client.list_blobs(name_starts_with=prefix)
            else:
                blobs = container_client.list_blobs()
            return [blob.name for blob in blobs if blob.name != ATTRS_BLOB]
        except AzureError as e:
            raise StoreError(f"Failed to list keys with prefix '{prefix}': {e}") from e
