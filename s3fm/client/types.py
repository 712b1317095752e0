from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

@dataclass
class HeadObjectOutput:
    """Metadata for an object."""
    content_type: str
    content_length: int
    last_modified: Optional[datetime]
    etag: str = ""
    user_metadata: Optional[Dict[str, str]] = None

@dataclass
class GetObjectOutput:
    """A fully fetched object."""
    body: bytes
    content_type: str
    content_length: int
    last_modified: Optional[datetime] = None

@dataclass
class ListedObject:
    """One entry of a listing: a stored object or a common prefix."""
    key: str
    size: int = 0
    last_modified: Optional[datetime] = None
    is_prefix: bool = False

@dataclass
class ListObjectsOptions:
    """Options for listing objects."""
    prefix: Optional[str] = None
    delimiter: Optional[str] = None
    start_after: Optional[str] = None
    max_keys: Optional[int] = None
