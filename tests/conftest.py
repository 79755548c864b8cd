import os
import pytest
from unittest.mock import Mock

from sakuracloud_plugin.infrastructure.protection.mutex_kv import MutexKV
from sakuracloud_plugin.infrastructure.sakuracloud.api_client import SakuraCloudClient


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mocked object storage credentials for moto."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')
    monkeypatch.delenv('SACLOUD_OJS_ACCESS_KEY_ID', raising=False)
    monkeypatch.delenv('SACLOUD_OJS_SECRET_ACCESS_KEY', raising=False)


@pytest.fixture
def client():
    """Mocked SakuraCloud API client; operations are replaced per test."""
    client = Mock(spec=SakuraCloudClient)
    client.default_zone = 'is1b'
    client.default_timeout = 60
    client.polling_interval = 0
    client.request_timeout = 30
    return client


@pytest.fixture
def mutex_kv(tmp_path):
    return MutexKV(str(tmp_path / "locks"))


@pytest.fixture
def no_sleep(monkeypatch):
    """Make waiters and retry loops spin without sleeping."""
    monkeypatch.setattr('time.sleep', lambda seconds: None)
