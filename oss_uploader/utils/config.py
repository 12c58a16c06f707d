"""
OSS connection configuration.

Holds the immutable OSSConfig and the environment-variable source. File
discovery and validation live in config_loader.
"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from dotenv import dotenv_values

# Required configuration fields (snake_case attribute names)
REQUIRED_FIELDS = ["region", "access_key_id", "access_key_secret", "bucket"]

DEFAULT_TIMEOUT_MS = 60000

# Config files use the camelCase spelling; both are accepted
KEY_ALIASES = {
    "accessKeyId": "access_key_id",
    "accessKeySecret": "access_key_secret",
}

ENV_VARS = {
    "OSS_REGION": "region",
    "OSS_ACCESS_KEY_ID": "access_key_id",
    "OSS_ACCESS_KEY_SECRET": "access_key_secret",
    "OSS_BUCKET": "bucket",
    "OSS_ENDPOINT": "endpoint",
    "OSS_INTERNAL": "internal",
    "OSS_SECURE": "secure",
    "OSS_TIMEOUT": "timeout",
}


@dataclass(frozen=True)
class OSSConfig:
    """
    Connection settings for one OSS bucket.

    Attributes:
        region: OSS region id (e.g. 'oss-cn-hangzhou')
        access_key_id: AccessKey ID
        access_key_secret: AccessKey secret (left out of repr)
        bucket: Bucket name
        endpoint: Custom endpoint host, overrides the region-derived one
        internal: Use the internal (intranet) endpoint
        secure: Use HTTPS
        timeout: Connection timeout in milliseconds
    """

    region: str
    access_key_id: str
    access_key_secret: str = field(repr=False)
    bucket: str
    endpoint: Optional[str] = None
    internal: bool = False
    secure: bool = True
    timeout: int = DEFAULT_TIMEOUT_MS

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OSSConfig":
        """
        Build a config from a validated mapping (camelCase or snake_case keys).

        Raises:
            ValueError: If a value cannot be coerced to its field type
        """
        normalized = normalize_keys(data)
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in normalized.items() if key in known}

        if "internal" in values:
            values["internal"] = _to_bool(values["internal"])
        if "secure" in values:
            values["secure"] = _to_bool(values["secure"])
        if values.get("timeout") is not None:
            try:
                values["timeout"] = int(values["timeout"])
            except (TypeError, ValueError):
                raise ValueError(f"Invalid timeout value: {values['timeout']!r}")
        else:
            values.pop("timeout", None)

        return cls(**values)

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000


def normalize_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Map camelCase config keys onto OSSConfig attribute names."""
    return {KEY_ALIASES.get(key, key): value for key, value in data.items()}


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def load_config_from_env(
    environ: Optional[Mapping[str, str]] = None,
    dotenv_path: Optional[Union[str, Path]] = None,
) -> Optional[Dict[str, Any]]:
    """
    Read OSS settings from environment variables.

    Values from `dotenv_path` (a .env file, if it exists) are used as
    defaults; real environment variables win.

    Args:
        environ: Environment mapping (defaults to os.environ)
        dotenv_path: Optional .env file

    Returns:
        Partial config dict, or None if none of the four required
        variables is set
    """
    env: Dict[str, Optional[str]] = {}
    if dotenv_path is not None and Path(dotenv_path).is_file():
        env.update(dotenv_values(dotenv_path))
    env.update(os.environ if environ is None else environ)

    required_vars = ["OSS_REGION", "OSS_ACCESS_KEY_ID", "OSS_ACCESS_KEY_SECRET", "OSS_BUCKET"]
    if not any(env.get(name) for name in required_vars):
        return None

    config: Dict[str, Any] = {}
    for env_name, field_name in ENV_VARS.items():
        value = env.get(env_name)
        if value is None:
            continue
        if field_name in ("internal", "secure"):
            config[field_name] = value == "true"
        elif field_name == "timeout":
            if value:
                config[field_name] = int(value)
        elif value:
            config[field_name] = value

    return config
