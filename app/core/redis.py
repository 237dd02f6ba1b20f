import redis.asyncio as redis
import json
import logging
from typing import Any, Dict, Optional
from app.core.settings import settings

logger = logging.getLogger(__name__)

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    global _redis_client

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True
            )
            await _redis_client.ping()
            logger.info("Redis connection established")
        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            _redis_client = None

    return _redis_client


async def close_redis() -> None:
    global _redis_client

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


async def hash_increment(key: str, field: str, amount: int = 1) -> bool:
    try:
        client = await get_redis()
        if client is None:
            return False

        await client.hincrby(key, field, amount)
        return True
    except Exception as e:
        logger.error(f"Hash increment error for {key}/{field}: {e}")
        return False


async def hash_drain(key: str) -> Dict[str, int]:
    """Read and delete a counter hash in one transaction."""
    try:
        client = await get_redis()
        if client is None:
            return {}

        async with client.pipeline(transaction=True) as pipe:
            pipe.hgetall(key)
            pipe.delete(key)
            values, _ = await pipe.execute()

        return {field: int(count) for field, count in (values or {}).items()}
    except Exception as e:
        logger.error(f"Hash drain error for {key}: {e}")
        return {}


async def publish_json(channel: str, message: Any) -> int:
    try:
        client = await get_redis()
        if client is None:
            return 0

        return await client.publish(channel, json.dumps(message, ensure_ascii=False, default=str))
    except Exception as e:
        logger.error(f"Publish error for channel {channel}: {e}")
        return 0
