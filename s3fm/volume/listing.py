# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Directory enumeration on top of prefix/delimiter listings.
"""

import time

from ..client.types import ListObjectsOptions
from ..utils import logger, time_function, trace_op
from .paths import PathTranslator


class DirectoryEnumerator:
    """
    Lists the immediate children of a directory.

    Listings are recomputed on every call. The store is asked for one level
    with a delimiter, and the results are still reduced to one segment past
    the prefix, so stores that ignore the delimiter give the same answer.

    Attributes:
        client: Object-store client
        bucket (str): Bucket name
        paths (PathTranslator): Path translator of the volume
    """

    def __init__(self, client, bucket: str, paths: PathTranslator):
        self.client = client
        self.bucket = bucket
        self.paths = paths

    def list_keys(self, path: str) -> list:
        """
        Return the keys of the direct children of a directory.

        Directory children are returned in marker form (ending with the
        separator), whether they come from a marker object, a common prefix,
        or a deeper key. The directory's own marker is never included.

        Args:
            path (str): Absolute or logical directory path

        Returns:
            list: Sorted child keys

        Raises:
            StoreError: If the listing request fails
        """
        trace_op("list_keys", path)
        start_time = time.time()
        sep = self.paths.separator
        prefix = self.paths.list_prefix(path)

        options = ListObjectsOptions(prefix=prefix or None, delimiter=sep)
        children = set()
        for entry in self.client.list_objects(self.bucket, options):
            if not entry.key.startswith(prefix):
                continue
            rest = entry.key[len(prefix):]
            if not rest:
                continue
            segment, has_sep, _ = rest.partition(sep)
            if not segment:
                continue
            children.add(prefix + segment + (sep if has_sep else ""))

        result = sorted(children)
        logger.debug(f"list_keys: {len(result)} children under prefix '{prefix}'")
        time_function("list_keys", start_time)
        return result

    def list(self, path: str) -> list:
        """
        Return the direct children of a directory as absolute paths.

        A file and a directory marker with the same name collapse into one entry.

        Args:
            path (str): Absolute or logical directory path

        Returns:
            list: Sorted absolute paths
        """
        return sorted({self.paths.from_object_key(key) for key in self.list_keys(path)})

    def has_children(self, path: str) -> bool:
        """
        Check whether any key lives under a directory's prefix.

        Used to recognise directories that exist only as a common prefix,
        without a marker object.

        Args:
            path (str): Absolute or logical directory path

        Returns:
            bool: True if at least one key other than the directory's own marker exists
        """
        prefix = self.paths.list_prefix(path)
        options = ListObjectsOptions(prefix=prefix or None, max_keys=2)
        return any(entry.key != prefix for entry in self.client.list_objects(self.bucket, options))
