"""Tests for MQTT ingestion of ranged beacon arrays."""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from beacon_records.mqtt_processor import MQTTBeaconProcessor


def make_message(topic, payload):
    return SimpleNamespace(topic=topic, payload=json.dumps(payload).encode('utf-8'))


@pytest.fixture
def processor(config):
    return MQTTBeaconProcessor(config)


class TestMQTTBeaconProcessor:
    """Tests for message handling."""

    def test_device_id_from_topic(self):
        assert MQTTBeaconProcessor.device_id_from_topic('/beacon/ranging/dev-7') == 'dev-7'
        assert MQTTBeaconProcessor.device_id_from_topic('/beacon/ranging/dev-7/') == 'dev-7'

    def test_publishes_encoded_batch(self, processor, raw_altbeacon):
        client = MagicMock()
        processor.on_message(client, None, make_message('/beacon/ranging/dev-1', [raw_altbeacon]))

        client.publish.assert_called_once()
        topic, message = client.publish.call_args[0]
        assert topic == '/beacon/records/dev-1'
        published = json.loads(message)
        assert len(published) == 1
        assert published[0]['proximityUUID'] == 'UUID'
        assert published[0]['rssi'] == -60
        assert published[0]['proximity'] == 'far'
        assert len(processor.beacon_store) == 1

    def test_filters_from_config(self, config, raw_altbeacon):
        config.set_decode_config(mac_filter=['SOMEONE-ELSE'])
        processor = MQTTBeaconProcessor(config)
        client = MagicMock()

        processor.on_message(client, None, make_message('/beacon/ranging/dev-1', [raw_altbeacon]))

        client.publish.assert_not_called()
        assert len(processor.beacon_store) == 0

    def test_invalid_payload_is_logged(self, processor, caplog):
        client = MagicMock()
        msg = SimpleNamespace(topic='/beacon/ranging/dev-1', payload=b'not json')

        processor.on_message(client, None, msg)

        client.publish.assert_not_called()
        assert '处理消息时出错' in caplog.text

    def test_on_connect_subscribes(self, processor):
        client = MagicMock()
        processor.on_connect(client, None, {}, SimpleNamespace(is_failure=False), None)
        client.subscribe.assert_called_once_with('/beacon/ranging/+')
        assert not hasattr(processor, 'current_topic')

    def test_process_payload_non_list(self, processor):
        assert processor.process_payload(json.dumps({'type': 'altbeacon'})) == []

    def test_non_finite_values_do_not_drop_batch(self, processor, raw_altbeacon):
        """A NaN rssi in one entry leaves the rest of the batch intact."""
        client = MagicMock()
        payload = '[%s, %s]' % (
            json.dumps(raw_altbeacon),
            json.dumps(dict(raw_altbeacon, macAddress='OTHER')).replace('"-60"', 'NaN'),
        )
        msg = SimpleNamespace(topic='/beacon/ranging/dev-2', payload=payload.encode('utf-8'))

        processor.on_message(client, None, msg)

        client.publish.assert_called_once()
        published = json.loads(client.publish.call_args[0][1])
        assert [item['rssi'] for item in published] == [-60, 0]
        assert len(processor.beacon_store) == 2
