"""Tests for the CSV record log."""

import os

import pytest

from beacon_records.beacon_store import BeaconStore
from beacon_records.codec import BeaconCodec
from beacon_records.proximity import Proximity


@pytest.fixture
def store(config):
    beacon_store = BeaconStore(config)
    beacon_store.load()
    return beacon_store


class TestBeaconStore:
    """Tests for persisting encoded records."""

    def test_empty_when_missing(self, store):
        assert len(store) == 0
        assert store.records() == []

    def test_add_and_reload(self, config, store, raw_altbeacon, raw_eddystone):
        codec = BeaconCodec.from_config(config)
        beacons = codec.decode_batch([raw_altbeacon, raw_eddystone])

        assert store.add(beacons) == 2
        assert os.path.exists(config.get_record_log_path())

        reloaded = BeaconStore(config)
        reloaded.load()
        records = reloaded.records()

        assert records == beacons
        assert records[0].rssi == -60
        assert records[0].tx_power == -59
        assert records[0].accuracy == 1.23
        assert records[0].proximity is Proximity.FAR
        assert records[1].tx_power is None
        assert records[1].proximity is Proximity.NEAR
        assert codec.encode(records[1]) == codec.encode(beacons[1])

    def test_add_skips_filtered_slots(self, store, raw_altbeacon):
        assert store.add([None, None]) == 0
        assert store.add([None, BeaconCodec().decode_one(raw_altbeacon)]) == 1
        assert len(store) == 1

    def test_unique_keeps_latest(self, store, raw_altbeacon):
        codec = BeaconCodec()
        store.add([codec.decode_one(raw_altbeacon)])
        store.add([codec.decode_one(dict(raw_altbeacon, rssi=-75))])

        unique = store.unique()
        assert len(store) == 2
        assert len(unique) == 1
        assert unique[0].rssi == -75

    def test_clear(self, store, raw_altbeacon):
        store.add([BeaconCodec().decode_one(raw_altbeacon)])
        store.clear()
        assert len(store) == 0

    def test_add_appends_without_rewriting(self, config, store, raw_altbeacon):
        codec = BeaconCodec()
        store.add([codec.decode_one(raw_altbeacon)])
        path = config.get_record_log_path()
        with open(path, encoding='utf-8') as f:
            first = f.read()

        store.add([codec.decode_one(dict(raw_altbeacon, rssi=-75))])

        with open(path, encoding='utf-8') as f:
            content = f.read()
        assert content.startswith(first)
        assert content.count('proximityUUID') == 1
        assert len(content.splitlines()) == 3

    def test_records_read_from_disk(self, config, store, raw_altbeacon):
        """Rows appended by another writer are visible without reloading."""
        writer = BeaconStore(config)
        writer.load()
        writer.add([BeaconCodec().decode_one(raw_altbeacon)])

        assert len(store.records()) == 1

    def test_load_counts_existing_rows(self, config, store, raw_altbeacon):
        store.add([BeaconCodec().decode_one(raw_altbeacon)] * 3)

        reloaded = BeaconStore(config)
        reloaded.load()
        assert len(reloaded) == 3
