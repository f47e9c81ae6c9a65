"""Pytest configuration and fixtures."""

import pytest

from beacon_records.config_manager import ConfigManager


@pytest.fixture
def raw_altbeacon():
    """Raw altbeacon map as sent by the ranging side (string numerics)."""
    return {
        'type': 'altbeacon',
        'proximityUUID': 'UUID',
        'macAddress': 'MAC-ADDRESS',
        'major': 1,
        'minor': 2,
        'namespaceId': '',
        'instanceId': '',
        'rssi': '-60',
        'txPower': '-59',
        'accuracy': '1.23',
        'proximity': 'far',
    }


@pytest.fixture
def raw_eddystone():
    return {
        'type': 'eddystone',
        'proximityUUID': '',
        'macAddress': 'AA:BB:CC:DD:EE:FF',
        'major': 0,
        'minor': 0,
        'namespaceId': 'edd1ebeac04e5defa017',
        'instanceId': '0123456789ab',
        'rssi': -72,
        'accuracy': 4.5,
    }


@pytest.fixture
def config(tmp_path):
    """Config manager writing into a temporary directory."""
    manager = ConfigManager(str(tmp_path / 'config' / 'config.yaml'))
    manager.config['paths']['record_log'] = str(tmp_path / 'beacon' / 'records.csv')
    manager.save_config()
    return manager
