from __future__ import annotations

import json
import uuid

from weather_relay.core.envelope import EVENT_SOURCE, EVENT_TYPE, Envelope, wrap
from weather_relay.core.transform import serialize, transform


def test_wrap_sets_fixed_attributes(onecall_payload) -> None:
    envelope = wrap(serialize(transform(onecall_payload, "01001")))

    assert envelope.source == EVENT_SOURCE == "com.wellorder.iot.weather"
    assert envelope.type == EVENT_TYPE == "https://openweathermap.org/"
    assert envelope.datacontenttype == "application/json"
    assert envelope.specversion == "1.0"
    assert envelope.time.tzinfo is not None


def test_envelope_id_is_a_canonical_uuid() -> None:
    envelope = wrap(b'{"temp": 280.0}')

    assert len(envelope.id) == 36
    assert str(uuid.UUID(envelope.id)) == envelope.id


def test_every_envelope_gets_a_new_id() -> None:
    ids = {wrap(b"{}").id for _ in range(50)}

    assert len(ids) == 50


def test_to_bytes_embeds_data_as_object(onecall_payload) -> None:
    weather = transform(onecall_payload, "01001")

    decoded = json.loads(wrap(serialize(weather)).to_bytes())

    assert decoded["data"] == weather.to_dict()
    assert decoded["data"]["location"]["zip"] == "01001"
    assert set(decoded) == {"specversion", "id", "source", "type", "datacontenttype", "time", "data"}


def test_wrap_accepts_record_directly(onecall_payload) -> None:
    weather = transform(onecall_payload, "01001")

    assert wrap(weather).data == wrap(serialize(weather)).data


def test_envelope_round_trips_through_bytes() -> None:
    envelope = Envelope(data={"temp": 1.0})

    assert Envelope.model_validate_json(envelope.to_bytes()) == envelope
