# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Volume configuration.

Options can be built directly, read from ``S3FM_*`` environment variables,
or read from a profile in a YAML credentials file::

    # ~/.s3fm/credentials.yaml
    default:
      access_key_id: your_access_key_id
      secret_access_key: your_secret_access_key
      bucket: my-bucket
      endpoint: https://s3.example.com   # optional
      region: us-east-1                  # optional
      tmp_path: /var/tmp/s3fm            # optional
      root: /                            # optional
"""

import os
from dataclasses import dataclass, replace
from typing import Optional

import yaml

from ..client.client import Session
from ..client.exceptions import ConfigurationError
from ..utils import logger

DEFAULT_CREDENTIALS_FILE = os.path.join("~", ".s3fm", "credentials.yaml")

PROFILE_FIELDS = {
    "access_key_id": "access_key",
    "secret_access_key": "secret_key",
    "bucket": "bucket",
    "endpoint": "endpoint",
    "region": "region",
    "tmp_path": "tmp_path",
    "root": "path",
}


@dataclass
class VolumeOptions:
    """
    Construction-time configuration of an S3Volume.

    Attributes:
        access_key (str): Access key id. Required.
        secret_key (str): Secret access key. Required.
        bucket (str): Bucket name. Required.
        endpoint (str, optional): Custom endpoint URL for S3-compatible stores.
        region (str, optional): Region name.
        tmp_path (str, optional): Scratch directory for reads; anonymous scratch is used when unset.
        path (str): Root path within the bucket. Defaults to "/".
        root_name (str): Root token of logical paths. Defaults to "s3".
        separator (str): Path separator. Defaults to "/".
        connect_timeout (float): Client connect timeout in seconds.
        read_timeout (float): Client read timeout in seconds.
    """
    access_key: str = ""
    secret_key: str = ""
    bucket: str = ""
    endpoint: Optional[str] = None
    region: Optional[str] = None
    tmp_path: Optional[str] = None
    path: str = "/"
    root_name: str = "s3"
    separator: str = "/"
    connect_timeout: float = 10.0
    read_timeout: float = 60.0

    def validate(self) -> None:
        """
        Check that the required options are set.

        Raises:
            ConfigurationError: If the access key, secret key or bucket is missing.
        """
        missing = [name for name in ("access_key", "secret_key", "bucket") if not getattr(self, name)]
        if missing:
            raise ConfigurationError(f"Required options undefined: {', '.join(missing)}")
        if not self.separator:
            raise ConfigurationError("The path separator cannot be empty")

    def session(self) -> Session:
        return Session(
            access_key=self.access_key,
            secret_key=self.secret_key,
            region=self.region,
            endpoint=self.endpoint,
            connect_timeout=self.connect_timeout,
            read_timeout=self.read_timeout,
        )

    def with_overrides(self, **overrides) -> "VolumeOptions":
        """Return a copy with the non-empty overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v})

    def prepare_tmp_path(self) -> Optional[str]:
        """
        Make sure the scratch directory exists and is writable.

        Returns:
            str or None: The usable scratch directory, or None to fall back to anonymous scratch
        """
        if not self.tmp_path:
            return None
        tmp_path = os.path.expanduser(self.tmp_path)
        try:
            os.makedirs(tmp_path, exist_ok=True)
        except OSError as e:
            logger.warning(f"Cannot create scratch directory {tmp_path}: {e}. Using anonymous scratch files.")
            return None
        if not os.access(tmp_path, os.W_OK):
            logger.warning(f"Scratch directory {tmp_path} is not writable. Using anonymous scratch files.")
            return None
        return tmp_path

    @classmethod
    def from_env(cls, prefix: str = "S3FM_", environ=None) -> "VolumeOptions":
        """
        Build options from environment variables.

        Args:
            prefix (str): Variable name prefix. Defaults to "S3FM_".
            environ (dict, optional): Mapping to read instead of os.environ.

        Returns:
            VolumeOptions: The options; not validated
        """
        env = os.environ if environ is None else environ
        return cls(
            access_key=env.get(f"{prefix}ACCESS_KEY", ""),
            secret_key=env.get(f"{prefix}SECRET_KEY", ""),
            bucket=env.get(f"{prefix}BUCKET", ""),
            endpoint=env.get(f"{prefix}ENDPOINT") or None,
            region=env.get(f"{prefix}REGION") or None,
            tmp_path=env.get(f"{prefix}TMP_PATH") or None,
            path=env.get(f"{prefix}ROOT") or "/",
        )

    @classmethod
    def from_profile(cls, profile: str = None, path: str = None) -> "VolumeOptions":
        """
        Build options from a profile of a YAML credentials file.

        Args:
            profile (str, optional): Profile name. Defaults to $S3FM_PROFILE or "default".
            path (str, optional): Credentials file. Defaults to ~/.s3fm/credentials.yaml.

        Returns:
            VolumeOptions: The options; not validated

        Raises:
            ConfigurationError: If the file cannot be read or the profile is missing.
        """
        profile = profile or os.environ.get("S3FM_PROFILE", "default")
        path = os.path.expanduser(path or DEFAULT_CREDENTIALS_FILE)
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read credentials file {path}: {e}") from e

        section = data.get(profile)
        if not isinstance(section, dict):
            raise ConfigurationError(f"Profile '{profile}' not found in {path}")

        values = {PROFILE_FIELDS[k]: v for k, v in section.items() if k in PROFILE_FIELDS and v is not None}
        logger.debug(f"Loaded profile '{profile}' from {path}")
        return cls(**values)
