import asyncio
import json

from crewup.realtime import sse_pubsub
from crewup.realtime.sse_pubsub import _event_name, crew_channel, publish_crew_message, publish_wave_event, wave_channel


class BrokenRedis:
    async def publish(self, channel, message):
        raise ConnectionError("redis down")


def test_channel_names():
    assert wave_channel(7) == "wave:7:events"
    assert crew_channel(3) == "crew:3:events"


def test_publish_wave_event_payload(fake_redis):
    asyncio.run(publish_wave_event(7, "wave_unlocked", chat_id=11))
    [(channel, payload)] = fake_redis.published
    assert channel == "wave:7:events"
    assert payload["type"] == "wave_unlocked"
    assert payload["wave_id"] == 7 and payload["chat_id"] == 11
    assert "ts" in payload


def test_publish_failure_is_logged_not_raised(monkeypatch):
    monkeypatch.setattr(sse_pubsub, "redis_client", BrokenRedis())
    asyncio.run(publish_crew_message(3, {"id": 1, "content": "hi"}))


def test_event_name_falls_back_to_default():
    assert _event_name(json.dumps({"type": "participant_left"}), "wave_event") == "participant_left"
    assert _event_name("not json", "wave_event") == "wave_event"
    assert _event_name(json.dumps(["no", "type"]), "wave_event") == "wave_event"
