"""Redis-backed event store adapter."""
import orjson
from redis.asyncio import Redis
from redis.asyncio.retry import Retry
from redis.backoff import NoBackoff
from redis.exceptions import RedisError
from .base import StoreAdapter
from ..config import get_settings
from ..errors import NotInitialized, StorageUnavailable
from ..event_models import NewEvent, StoredEvent, format_timestamp
from ..query.compiler import CompiledQuery

settings = get_settings()

# KEYS: events hash, id sequence, schema marker. ARGV: serialized record.
APPEND_SCRIPT = """
if redis.call('EXISTS', KEYS[3]) == 0 then
  return -1
end
local id = redis.call('INCR', KEYS[2])
redis.call('HSET', KEYS[1], id, ARGV[1])
return id
"""

# KEYS: events hash, id sequence, schema marker.
PROVISION_SCRIPT = """
if redis.call('SETNX', KEYS[3], '1') == 1 then
  redis.call('DEL', KEYS[1], KEYS[2])
  return 1
end
return 0
"""


class RedisAdapter(StoreAdapter):
    """Redis implementation of the event store adapter.

    Events live in one hash keyed by id. Ids come from ``INCR`` on a
    sequence key, executed together with the write in a server-side script
    so assignment is atomic across processes. A marker key records that the
    schema exists.
    """

    def __init__(self, redis_url: str | None = None, key_prefix: str | None = None):
        """
        Initialize Redis adapter.

        Args:
            redis_url: Redis connection URL (defaults to settings.REDIS_URL)
            key_prefix: Namespace for keys (defaults to settings.REDIS_KEY_PREFIX)
        """
        self.redis_url = redis_url or str(settings.REDIS_URL)
        prefix = key_prefix or settings.REDIS_KEY_PREFIX
        self._events_key = f"{prefix}:events"
        self._seq_key = f"{prefix}:events:seq"
        self._schema_key = f"{prefix}:events:schema"
        self._client: Redis | None = None
        self._append_script = None
        self._provision_script = None

    @property
    def _keys(self) -> list[str]:
        return [self._events_key, self._seq_key, self._schema_key]

    def _get_client(self) -> Redis:
        """Get or create Redis client."""
        if self._client is None:
            self._client = Redis.from_url(
                self.redis_url,
                decode_responses=False,
                socket_connect_timeout=5,
                socket_timeout=5,
                # Retrying is left to the caller
                retry=Retry(NoBackoff(), 0),
            )
            self._append_script = self._client.register_script(APPEND_SCRIPT)
            self._provision_script = self._client.register_script(PROVISION_SCRIPT)
        return self._client

    async def reset(self) -> None:
        try:
            pipe = self._get_client().pipeline(transaction=True)
            pipe.delete(self._events_key, self._seq_key)
            pipe.set(self._schema_key, b"1")
            await pipe.execute()
        except RedisError as e:
            raise StorageUnavailable("reset", e) from e

    async def provision(self) -> bool:
        try:
            self._get_client()
            created = await self._provision_script(keys=self._keys)
        except RedisError as e:
            raise StorageUnavailable("provision", e) from e
        return int(created) == 1

    async def append(self, evt: NewEvent) -> StoredEvent:
        """
        Persist event and assign its id in one atomic script call.

        Raises:
            NotInitialized: If the schema marker is missing
            StorageUnavailable: If unable to write to Redis
        """
        record = orjson.dumps(
            {
                "timestamp": format_timestamp(evt.timestamp),
                "source": evt.source,
                "event_type": evt.event_type,
                "data": evt.data,
                "search_text": evt.search_text,
            },
            option=orjson.OPT_NON_STR_KEYS,
        )
        try:
            self._get_client()
            event_id = int(await self._append_script(keys=self._keys, args=[record]))
        except RedisError as e:
            raise StorageUnavailable("append", e) from e

        if event_id < 0:
            raise NotInitialized()
        return evt.stored(event_id)

    async def query(self, compiled: CompiledQuery) -> list[StoredEvent]:
        """
        Read a consistent snapshot of all events and filter it locally.

        Raises:
            NotInitialized: If the schema marker is missing
            StorageUnavailable: If unable to read from Redis
        """
        try:
            pipe = self._get_client().pipeline(transaction=True)
            pipe.exists(self._schema_key)
            pipe.hgetall(self._events_key)
            initialized, entries = await pipe.execute()
        except RedisError as e:
            raise StorageUnavailable("query", e) from e

        if not initialized:
            raise NotInitialized()

        events = [
            StoredEvent(id=int(event_id), **orjson.loads(raw))
            for event_id, raw in entries.items()
        ]
        return compiled.apply(events)

    async def health_check(self) -> bool:
        """
        Check Redis connection health.

        Returns:
            True if Redis is accessible, False otherwise
        """
        try:
            return bool(await self._get_client().ping())
        except RedisError:
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            self._client = None
