# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Stat records and the object metadata resolver.

The store has no directories, so existence is resolved by probing two key
forms: the plain key (a file) and the key with a trailing separator (a
directory marker). Directories that exist only as a common prefix of other
keys are not resolved here; see DirectoryEnumerator.has_children.
"""

import time
from dataclasses import dataclass, asdict
from typing import Optional

from ..client.exceptions import ObjectError, StoreError
from ..utils import logger, trace_op
from .paths import PathTranslator
from .results import Found, NotFound, ProbeResult, TransportError

DIRECTORY_MIME = "directory"

# Content type stores give bodies stored without one; directory markers carry it
MARKER_CONTENT_TYPE = "binary/octet-stream"


@dataclass(frozen=True)
class StatRecord:
    """
    Metadata of a file or directory as the frontend sees it.

    ``mime == "directory"`` marks directories; it is a sentinel, not a real
    MIME type.
    """
    size: int = 0
    ts: int = 0
    mime: str = DIRECTORY_MIME
    read: bool = True
    write: bool = True
    locked: bool = False
    hidden: bool = False
    alias: Optional[str] = None

    @property
    def is_directory(self) -> bool:
        return self.mime == DIRECTORY_MIME

    def to_dict(self) -> dict:
        return asdict(self)


class MetadataResolver:
    """
    Resolves paths to StatRecords with HEAD requests.

    Attributes:
        client: Object-store client
        bucket (str): Bucket name
        paths (PathTranslator): Path translator of the volume
    """

    def __init__(self, client, bucket: str, paths: PathTranslator):
        self.client = client
        self.bucket = bucket
        self.paths = paths

    def root_record(self) -> StatRecord:
        """The root always exists, whether or not a marker object backs it."""
        return StatRecord(ts=int(time.time()))

    def probe(self, key: str) -> ProbeResult:
        """
        Issue one metadata-only lookup.

        Args:
            key (str): Object key to look up

        Returns:
            ProbeResult: Found, NotFound, or TransportError when the request itself failed
        """
        try:
            meta = self.client.head_object(self.bucket, key)
        except ObjectError as e:
            if e.not_found:
                return NotFound(key)
            return TransportError(key, e)
        except StoreError as e:
            return TransportError(key, e)
        return Found(key, meta)

    def _probe_as_missing(self, key: str) -> Optional[Found]:
        result = self.probe(key)
        if isinstance(result, TransportError):
            # a failed probe is indistinguishable from a missing key here
            logger.warning(f"stat: probe for {key} failed, treating as not found: {result.cause}")
            return None
        if isinstance(result, NotFound):
            return None
        return result

    def stat(self, path: str) -> Optional[StatRecord]:
        """
        Return the stat record for a path.

        Args:
            path (str): Absolute or logical path

        Returns:
            StatRecord or None: None when neither the object nor its directory marker exists
        """
        trace_op("stat", path)
        if self.paths.is_root(path):
            return self.root_record()

        key = self.paths.to_object_key(path)
        if not key:
            logger.debug(f"stat: {path} resolves to the bucket root outside the volume root")
            return None

        found = self._probe_as_missing(key)
        if found is None:
            found = self._probe_as_missing(key + self.paths.separator)
        if found is None:
            logger.debug(f"stat: {path} not found")
            return None

        return self._record(found)

    def _record(self, found: Found) -> StatRecord:
        meta = found.meta
        is_marker = found.key.endswith(self.paths.separator)

        mime = meta.content_type or DIRECTORY_MIME
        if is_marker or mime == MARKER_CONTENT_TYPE:
            mime = DIRECTORY_MIME

        if meta.last_modified is not None:
            ts = int(meta.last_modified.timestamp())
        else:
            ts = int(time.time())

        return StatRecord(size=int(meta.content_length or 0), ts=ts, mime=mime)
