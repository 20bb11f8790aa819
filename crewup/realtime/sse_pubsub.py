# SSE + Redis Pub/Sub: 웨이브 참여/언락, 크루 채팅 메시지 실시간 전달
# SSE: 폴링 없이 서버→클라이언트 푸시 (long-lived connection → 예외 처리 필수)
# Redis Pub/Sub: 멀티 워커 환경에서도 확장 가능, 발행/구독 분리
# 발행은 항상 commit 이후에만 (롤백된 상태가 밖으로 새지 않도록)

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict

import redis.asyncio as redis
from loguru import logger

from crewup.core.config import REDIS_URL, SSE_HEARTBEAT_INTERVAL

WAVE_CHANNEL_PREFIX = "wave:"
CREW_CHANNEL_PREFIX = "crew:"
CHANNEL_SUFFIX = ":events"

# 모듈 단일 클라이언트 재사용 (매 루프마다 새 연결 생성 방지)
redis_client = redis.from_url(REDIS_URL, decode_responses=True)


def wave_channel(wave_id: int) -> str:
    return f"{WAVE_CHANNEL_PREFIX}{wave_id}{CHANNEL_SUFFIX}"


def crew_channel(chat_id: int) -> str:
    return f"{CREW_CHANNEL_PREFIX}{chat_id}{CHANNEL_SUFFIX}"


def _payload(event_type: str, **data: Any) -> str:
    body: Dict[str, Any] = {"type": event_type, **data, "ts": datetime.now(timezone.utc).isoformat()}
    return json.dumps(body, ensure_ascii=False, default=str)


async def _publish(channel: str, message: str) -> None:
    try:
        await redis_client.publish(channel, message)
    except Exception as e:
        # Redis 미기동 시 스트림만 실패, 이미 commit된 요청은 유지
        logger.warning(f"realtime publish failed: channel={channel} error={e!r}")


async def publish_wave_event(wave_id: int, event_type: str, **data: Any) -> None:
    """participant_joined / participant_left / wave_unlocked / wave_deleted."""
    await _publish(wave_channel(wave_id), _payload(event_type, wave_id=wave_id, **data))


async def publish_crew_message(chat_id: int, message: Dict[str, Any]) -> None:
    """크루 채팅 새 메시지 → crew:{id}:events 채널 (event: message_posted)."""
    await _publish(crew_channel(chat_id), _payload("message_posted", chat_id=chat_id, message=message))


def _event_name(data: str, default: str) -> str:
    try:
        return json.loads(data).get("type") or default
    except (ValueError, AttributeError):
        return default


async def stream_events(channel: str, default_event: str = "message") -> AsyncGenerator[str, None]:
    """
    채널 구독 → SSE 포맷으로 전달. payload의 type을 SSE event 이름으로 사용.
    주기적으로 heartbeat(": ping") 전송. 연결 해제 시 구독 정리.
    """
    pubsub = redis_client.pubsub()
    try:
        await pubsub.subscribe(channel)
        last_heartbeat = datetime.now(timezone.utc).timestamp()

        while True:
            message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
            now = datetime.now(timezone.utc).timestamp()
            if now - last_heartbeat >= SSE_HEARTBEAT_INTERVAL:
                yield ": ping\n\n"
                last_heartbeat = now
            if message and message.get("type") == "message":
                data = message.get("data") or ""
                yield f"event: {_event_name(data, default_event)}\ndata: {data}\n\n"
    except asyncio.CancelledError:
        logger.debug(f"sse stream closed: channel={channel}")
    finally:
        await pubsub.unsubscribe(channel)
        await pubsub.close()
