"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add project root to path for imports
project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from oss_uploader.client import HeadResult, ObjectState, OSSClient  # noqa: E402
from oss_uploader.utils.config import OSSConfig  # noqa: E402

OSS_ENV_VARS = [
    "OSS_REGION",
    "OSS_ACCESS_KEY_ID",
    "OSS_ACCESS_KEY_SECRET",
    "OSS_BUCKET",
    "OSS_ENDPOINT",
    "OSS_INTERNAL",
    "OSS_SECURE",
    "OSS_TIMEOUT",
]


@pytest.fixture
def oss_config() -> OSSConfig:
    """Minimal valid configuration."""
    return OSSConfig(
        region="oss-cn-hangzhou",
        access_key_id="test-key-id",
        access_key_secret="test-key-secret",
        bucket="test-bucket",
    )


@pytest.fixture
def mock_client(oss_config: OSSConfig) -> MagicMock:
    """OSSClient stand-in: every key is missing and every put succeeds."""
    client = MagicMock(spec=OSSClient)
    client.config = oss_config
    client.head.return_value = HeadResult(ObjectState.NOT_FOUND)
    client.object_url.side_effect = (
        lambda key: f"https://test-bucket.oss-cn-hangzhou.aliyuncs.com/{key}"
    )
    return client


@pytest.fixture
def clean_env(monkeypatch):
    """Remove OSS_* variables so tests don't pick up the developer's settings."""
    for name in OSS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
