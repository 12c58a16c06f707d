"""
Configuration discovery, loading and validation.

Resolves OSS settings in priority order:

1. An explicit config path (``--config``)
2. The first config file found in the search directory
3. Environment variables (``OSS_*``, optionally seeded from ``.env``)

Supported files:
    .ossrc              YAML or JSON
    .ossrc.json         JSON
    .ossrc.yaml/.yml    YAML
    oss.config.py       Python module exposing a ``config`` mapping
    oss.config.json     JSON
    package.json        ``"oss"`` field
    pyproject.toml      ``[tool.oss]`` table

Example .ossrc.json:
    ```json
    {
      "region": "oss-cn-hangzhou",
      "accessKeyId": "LTAI...",
      "accessKeySecret": "...",
      "bucket": "my-assets",
      "secure": true,
      "timeout": 60000
    }
    ```

Usage:
    >>> from oss_uploader.utils.config_loader import load_config
    >>> config = load_config()
    >>> print(config.bucket)
"""

import importlib.util
import json
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import yaml

from oss_uploader.utils.config import (
    REQUIRED_FIELDS,
    OSSConfig,
    load_config_from_env,
    normalize_keys,
)
from oss_uploader.utils.logging import get_logger, log_function_call

logger = get_logger(__name__)

CONFIG_MODULE_NAME = "oss"

SEARCH_PLACES = [
    ".ossrc",
    ".ossrc.json",
    ".ossrc.yaml",
    ".ossrc.yml",
    "oss.config.py",
    "oss.config.json",
    "package.json",
    "pyproject.toml",
]

DEFAULT_SAMPLE_PATH = ".ossrc.json"

# Field names as they appear in config files and error messages
DISPLAY_NAMES = {
    "region": "region",
    "access_key_id": "accessKeyId",
    "access_key_secret": "accessKeySecret",
    "bucket": "bucket",
}

SAMPLE_JSON_CONFIG = {
    "region": "oss-cn-hangzhou",
    "accessKeyId": "YOUR_ACCESS_KEY_ID",
    "accessKeySecret": "YOUR_ACCESS_KEY_SECRET",
    "bucket": "YOUR_BUCKET_NAME",
    "secure": True,
    "timeout": 60000,
}

SAMPLE_PY_CONFIG = '''"""oss-uploader configuration.

Values fall back to the placeholders below when the OSS_* environment
variables are not set.
"""

import os

config = {
    # Required fields
    "region": os.getenv("OSS_REGION", "oss-cn-hangzhou"),
    "accessKeyId": os.getenv("OSS_ACCESS_KEY_ID", "YOUR_ACCESS_KEY_ID"),
    "accessKeySecret": os.getenv("OSS_ACCESS_KEY_SECRET", "YOUR_ACCESS_KEY_SECRET"),
    "bucket": os.getenv("OSS_BUCKET", "YOUR_BUCKET_NAME"),
    # Optional fields
    # "endpoint": os.getenv("OSS_ENDPOINT"),
    # "internal": os.getenv("OSS_INTERNAL") == "true",
    "secure": True,
    "timeout": 60000,
}
'''


@dataclass
class ConfigError:
    """Validation error in configuration."""

    field: str
    message: str
    value: Optional[Any] = None

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.field}: {self.message} (got: {self.value})"
        return f"{self.field}: {self.message}"


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    search_dir: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> OSSConfig:
    """
    Resolve, validate and return the OSS configuration.

    Args:
        config_path: Explicit config file; skips discovery when given
        search_dir: Directory searched for config files and .env
            (default: current working directory)
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated OSSConfig

    Raises:
        FileNotFoundError: If config_path doesn't exist
        ValueError: If no configuration is found, the file can't be parsed,
            or required fields are missing
    """
    base_dir = Path(search_dir) if search_dir is not None else Path.cwd()
    data: Optional[Dict[str, Any]] = None

    if config_path is not None:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        try:
            data = read_config_file(path)
        except ValueError as e:
            raise ValueError(f"Failed to load config from {config_path}: {e}")
        if data is None:
            raise ValueError(
                f"Failed to load config from {config_path}: no '{CONFIG_MODULE_NAME}' section"
            )
        logger.info(f"Loaded configuration from {path}")
    else:
        found = find_config_file(base_dir)
        if found is not None:
            path, data = found
            logger.info(f"Loaded configuration from {path}")

    if data is None:
        data = load_config_from_env(environ=environ, dotenv_path=base_dir / ".env")
        if data is not None:
            logger.info("Using configuration from environment variables")

    if data is None:
        raise ValueError(
            "No configuration found. Please create a .ossrc.json, specify a config "
            "path, or set environment variables (OSS_REGION, OSS_ACCESS_KEY_ID, "
            "OSS_ACCESS_KEY_SECRET, OSS_BUCKET)."
        )

    errors = validate_config(data)
    if errors:
        missing = ", ".join(e.field for e in errors)
        raise ValueError(f"Missing required configuration fields: {missing}")

    config = OSSConfig.from_dict(data)
    check_region(config.region)
    return config


def find_config_file(search_dir: Path) -> Optional[Tuple[Path, Dict[str, Any]]]:
    """
    Return (path, data) for the first usable config file in `search_dir`.

    package.json and pyproject.toml only count when they carry an OSS
    section. Other files are returned even if empty so that a broken config
    is reported instead of silently falling through to the environment.
    """
    for name in SEARCH_PLACES:
        candidate = search_dir / name
        if not candidate.is_file():
            continue

        try:
            data = read_config_file(candidate)
        except ValueError as e:
            raise ValueError(f"Failed to load config from {candidate}: {e}")

        if data is None:
            continue
        return candidate, data

    return None


def read_config_file(path: Path) -> Optional[Dict[str, Any]]:
    """
    Parse a config file by name/extension.

    Returns:
        Config mapping, or None for package.json/pyproject.toml files
        without an OSS section

    Raises:
        ValueError: On unsupported formats and parse errors
    """
    if path.name == "package.json":
        document = _read_json(path)
        if not isinstance(document, dict):
            return None
        section = document.get(CONFIG_MODULE_NAME)
        return _as_mapping(section, path) if section is not None else None

    if path.name == "pyproject.toml":
        try:
            with open(path, "rb") as f:
                document = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML: {e}")
        section = document.get("tool", {}).get(CONFIG_MODULE_NAME)
        return _as_mapping(section, path) if section is not None else None

    suffix = path.suffix.lower()
    # ".ossrc" has no suffix: Path(".ossrc").suffix == ""
    if suffix == ".json":
        return _as_mapping(_read_json(path), path)
    if suffix in ("", ".yaml", ".yml"):
        return _as_mapping(_read_yaml(path), path)
    if suffix == ".py":
        return _as_mapping(_read_python_module(path), path)

    raise ValueError(f"Unsupported config file format: {suffix}")


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}")


def _read_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML: {e}")


def _read_python_module(path: Path) -> Any:
    """Execute a Python config file and return its `config` attribute."""
    spec = importlib.util.spec_from_file_location("_oss_uploader_user_config", path)
    if spec is None or spec.loader is None:
        raise ValueError(f"Cannot import {path}")

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise ValueError(f"{type(e).__name__}: {e}")

    if not hasattr(module, "config"):
        raise ValueError("Python config must define a module-level `config` mapping")
    return module.config


def _as_mapping(data: Any, path: Path) -> Dict[str, Any]:
    if data is None:
        raise ValueError("Configuration file is empty")
    if isinstance(data, OSSConfig):
        return {
            "region": data.region,
            "access_key_id": data.access_key_id,
            "access_key_secret": data.access_key_secret,
            "bucket": data.bucket,
            "endpoint": data.endpoint,
            "internal": data.internal,
            "secure": data.secure,
            "timeout": data.timeout,
        }
    if not isinstance(data, Mapping):
        raise ValueError(f"Expected a mapping in {path.name}, got {type(data).__name__}")
    return dict(data)


def validate_config(data: Mapping[str, Any]) -> List[ConfigError]:
    """
    Check that every required field is present and non-empty.

    Args:
        data: Raw config mapping (camelCase or snake_case keys)

    Returns:
        List of validation errors (empty if valid), in REQUIRED_FIELDS order
    """
    normalized = normalize_keys(data)
    errors: List[ConfigError] = []

    for field in REQUIRED_FIELDS:
        if not normalized.get(field):
            errors.append(ConfigError(DISPLAY_NAMES[field], "Missing required field"))

    return errors


def check_region(region: str) -> bool:
    """Warn (without failing) when the region doesn't look like 'oss-<area>'."""
    if region.startswith("oss-"):
        return True
    logger.warning(
        f'Region "{region}" doesn\'t follow the standard format (e.g., "oss-cn-hangzhou")'
    )
    return False


@log_function_call
def create_sample_config(
    output_path: Union[str, Path] = DEFAULT_SAMPLE_PATH,
    file_type: Optional[str] = None,
) -> Path:
    """
    Write a sample configuration file.

    Args:
        output_path: Destination path
        file_type: "json" or "py"; detected from the extension if None

    Returns:
        Absolute path of the created file

    Raises:
        FileExistsError: If the destination already exists
        ValueError: If file_type is not supported
    """
    path = Path(output_path).resolve()

    if path.exists():
        raise FileExistsError(f"Config file already exists: {path}")

    if file_type is None:
        file_type = "py" if path.suffix == ".py" else "json"

    if file_type == "py":
        content = SAMPLE_PY_CONFIG
    elif file_type == "json":
        content = json.dumps(SAMPLE_JSON_CONFIG, indent=2) + "\n"
    else:
        raise ValueError(f"Unsupported config type: {file_type} (valid: json, py)")

    path.write_text(content, encoding="utf-8")
    logger.info(f"Sample configuration created: {path}")
    return path
