# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Path translation between frontend paths and object keys.

Three representations are in play:

- absolute path: rooted at the configured root within the bucket, e.g. ``/docs/a.txt``
- logical path: what the frontend displays, rooted at the volume's root name, e.g. ``s3/docs/a.txt``
- object key: what the store is asked for, e.g. ``docs/a.txt`` (directory markers end in the separator)

Everything here is a pure string transform.
"""

import re
from typing import Optional


class PathTranslator:
    """
    Converts between absolute paths, logical paths and object keys.

    Attributes:
        root (str): Absolute root path within the bucket, always starting with the separator.
        root_name (str): Token the logical paths start with.
        separator (str): Path separator used in keys and paths.
    """

    def __init__(self, root: str = "/", root_name: str = "s3", separator: str = "/"):
        self.separator = separator
        self.root_name = root_name
        self._repeated = re.compile(f"(?:{re.escape(separator)}){{2,}}")
        self.root = separator + self.normpath(root or separator)

    def normpath(self, path: str) -> str:
        """
        Normalize a path into key form.

        Repeated separators are collapsed, then the leading separator and
        exactly one trailing separator are stripped.

        Args:
            path (str): Path to normalize

        Returns:
            str: The normalized path, '' for the bucket root
        """
        sep = self.separator
        result = self._repeated.sub(sep, path)
        if result.startswith(sep):
            result = result[len(sep):]
        if result.endswith(sep):
            result = result[:-len(sep)]
        return result

    def is_logical(self, path: str) -> bool:
        if not self.root_name:
            return False
        return path == self.root_name or path.startswith(self.root_name + self.separator)

    def to_object_key(self, path: str) -> str:
        """
        Convert an absolute or logical path to an object key.

        Args:
            path (str): Absolute path (``/docs/a.txt``) or logical path (``s3/docs/a.txt``)

        Returns:
            str: The object key, without a trailing separator
        """
        if self.is_logical(path):
            path = self.from_logical(path)
        return self.normpath(path)

    def from_object_key(self, key: str) -> str:
        """
        Convert an object key (or directory marker key) back to an absolute path.

        Args:
            key (str): Object key

        Returns:
            str: Absolute path starting with the separator
        """
        return self.separator + self.normpath(key)

    def marker_key(self, path: str) -> str:
        """
        Return the directory-marker key for a path, '' for the bucket root.

        Args:
            path (str): Absolute or logical directory path

        Returns:
            str: The key with exactly one trailing separator
        """
        key = self.to_object_key(path)
        return key + self.separator if key else ""

    def list_prefix(self, path: str) -> str:
        """Prefix that selects the children of a directory."""
        return self.marker_key(path)

    def is_root(self, path: str) -> bool:
        return self.to_object_key(path) == self.normpath(self.root)

    def dirname(self, path: str) -> str:
        """
        Return the parent directory of a path.

        A trailing separator is ignored. The parent of a logical path is a
        logical path, with the root name as the parent of top-level entries;
        any other parent starts with the separator, so top-level entries
        have the parent ``/``.

        Args:
            path (str): Absolute or logical path

        Returns:
            str: Parent path, in the same form as ``path``
        """
        sep = self.separator
        stripped = path[:-len(sep)] if path.endswith(sep) else path
        index = stripped.rfind(sep)
        parent = stripped[:index] if index >= 0 else ""
        if self.is_logical(path):
            return parent if self.is_logical(parent) else self.root_name
        if not parent.startswith(sep):
            parent = sep + parent
        return parent

    def basename(self, path: str) -> str:
        sep = self.separator
        stripped = path[:-len(sep)] if path.endswith(sep) else path
        return stripped.rsplit(sep, 1)[-1]

    def join(self, directory: str, name: str) -> str:
        """
        Join a directory path and an entry name with exactly one separator.

        Args:
            directory (str): Directory path
            name (str): Entry name

        Returns:
            str: The joined path
        """
        sep = self.separator
        return f"{directory.rstrip(sep)}{sep}{name.lstrip(sep)}"

    def is_descendant(self, path: str, ancestor: str) -> bool:
        return path == ancestor or path.startswith(ancestor + self.separator)

    def relpath(self, path: str) -> Optional[str]:
        """
        Return a path relative to the root, '' for the root itself.

        Args:
            path (str): Absolute path

        Returns:
            str: Path relative to the root, without a leading separator, or
            None when the path lies outside the root
        """
        key = self.normpath(path)
        root_key = self.normpath(self.root)
        if key == root_key:
            return ""
        if not root_key:
            return key
        if key.startswith(root_key + self.separator):
            return key[len(root_key) + len(self.separator):]
        return None

    def abspath(self, relpath: str) -> str:
        """
        Convert a root-relative path into an absolute path.

        Args:
            relpath (str): Path relative to the root; '' or the separator mean the root

        Returns:
            str: Absolute path
        """
        rel = self.normpath(relpath)
        if not rel:
            return self.root
        return self.join(self.root, rel)

    def to_logical(self, path: str) -> Optional[str]:
        """
        Render an absolute path the way the frontend displays it.

        Args:
            path (str): Absolute path

        Returns:
            str: Logical path starting with the root name, or None when the
            path lies outside the root and has no logical form
        """
        if self.is_logical(path):
            path = self.from_logical(path)
        rel = self.relpath(path)
        if rel is None:
            return None
        if not rel:
            return self.root_name
        return self.root_name + self.separator + rel

    def from_logical(self, logical: str) -> str:
        return self.abspath(logical[len(self.root_name):])
