"""Multi-tier caching for detection, transliteration and translation results.

Tiers are consulted fastest first:

- memory: in-process LRU with TTL (default: 30 minutes)
- session: SQLite rows namespaced by session id (default: 2 hours)
- persistent: SQLite rows that survive restarts (default: 7 days)

A hit in a slower tier is promoted into every faster tier. Backend failures
are logged and counted, never raised to callers.
"""

import asyncio
import hashlib
import json
import logging
import sqlite3
import time
import unicodedata
import uuid
from collections import OrderedDict
from pathlib import Path
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Protocol,
    Sequence,
    runtime_checkable,
)

import aiosqlite
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from linguabridge.core.exceptions import CacheBackendError
from linguabridge.metrics.translation_metrics import (
    cache_backend_errors_total,
    cache_inflight_joins_total,
    cache_requests_total,
)
from linguabridge.services.translation.language_registry import (
    LanguageRegistry,
    normalize_identifier,
)
from linguabridge.services.translation.models import CacheEntry

logger = logging.getLogger(__name__)

KEY_PREFIX = "linguabridge:v1"
CACHE_KINDS = frozenset({"detect", "translit", "translate"})

DEFAULT_MEMORY_TTL = 1800  # 30 minutes
DEFAULT_SESSION_TTL = 7200  # 2 hours
DEFAULT_PERSISTENT_TTL = 604800  # 7 days


def normalize_text(text: str) -> str:
    """NFC, trimmed, with space runs collapsed inside each line.

    Line breaks are kept so multi-line messages never share a key with
    their single-line variant.
    """
    lines = unicodedata.normalize("NFC", text).strip().splitlines()
    return "\n".join(" ".join(line.split()) for line in lines)


def make_cache_key(
    kind: str,
    text: str,
    source_id: str,
    target_id: str,
    registry: Optional[LanguageRegistry] = None,
) -> str:
    """Build a stable cache key.

    Format: ``linguabridge:v1:<kind>:<source>:<target>:<sha256(text)>``.
    Language identifiers are canonicalised through the registry when one is
    given, otherwise normalised with ``normalize_identifier``.
    """
    if kind not in CACHE_KINDS:
        raise ValueError(f"Unknown cache key kind: {kind}")

    def canonical(identifier: str) -> str:
        if registry is not None:
            return registry.canonical_id(identifier)
        return normalize_identifier(identifier)

    digest = hashlib.sha256(normalize_text(text).encode("utf-8")).hexdigest()
    return f"{KEY_PREFIX}:{kind}:{canonical(source_id)}:{canonical(target_id)}:{digest}"


@runtime_checkable
class CacheBackend(Protocol):
    """One cache tier. Raises CacheBackendError when its storage fails."""

    name: str
    default_ttl: float

    async def get(self, key: str) -> Optional[CacheEntry]:
        ...

    async def set(self, key: str, entry: CacheEntry) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...

    async def clear(self) -> None:
        ...


class MemoryBackend:
    """In-memory LRU tier.

    Entries are returned as stored; expiry is judged by the caller so a
    single injected clock governs every tier.
    """

    def __init__(
        self,
        max_entries: int = 1000,
        default_ttl: float = DEFAULT_MEMORY_TTL,
        name: str = "memory",
    ):
        """Initialize the LRU tier.

        Args:
            max_entries: Maximum number of entries to store.
            default_ttl: TTL in seconds for entries written without one.
            name: Tier name used in logs, metrics and ``tiers`` filters.
        """
        if max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        self.name = name
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()

    async def get(self, key: str) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is not None:
            # Move to end (most recently used)
            self._entries.move_to_end(key)
        return entry

    async def set(self, key: str, entry: CacheEntry) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)
        elif len(self._entries) >= self.max_entries:
            # Remove oldest (first) item
            self._entries.popitem(last=False)
        self._entries[key] = entry

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class SQLiteBackend:
    """SQLite tier storing JSON-encoded CacheEntry rows under a namespace.

    The session and persistent tiers share one database file and table and
    differ only by namespace and default TTL.
    """

    TABLE = "linguabridge_cache"

    def __init__(
        self,
        db_path: str,
        namespace: str = "persistent",
        default_ttl: float = DEFAULT_PERSISTENT_TTL,
        name: Optional[str] = None,
    ):
        self.db_path = db_path
        self.namespace = namespace
        self.default_ttl = default_ttl
        self.name = name or namespace.split(":", 1)[0]
        self._schema_ready = False
        self._schema_lock = asyncio.Lock()

    @classmethod
    def session(
        cls,
        db_path: str,
        session_id: Optional[str] = None,
        default_ttl: float = DEFAULT_SESSION_TTL,
    ) -> "SQLiteBackend":
        """Build a session-scoped tier (namespace ``session:<id>``)."""
        session_id = session_id or uuid.uuid4().hex
        return cls(
            db_path,
            namespace=f"session:{session_id}",
            default_ttl=default_ttl,
            name="session",
        )

    @property
    def is_session_scoped(self) -> bool:
        return self.namespace.startswith("session:")

    async def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        async with self._schema_lock:
            if self._schema_ready:
                return
            try:
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
                async with aiosqlite.connect(self.db_path) as db:
                    await db.execute(f"""
                        CREATE TABLE IF NOT EXISTS {self.TABLE} (
                            namespace TEXT NOT NULL,
                            cache_key TEXT NOT NULL,
                            value TEXT NOT NULL,
                            created_at REAL NOT NULL,
                            expires_at REAL NOT NULL,
                            PRIMARY KEY (namespace, cache_key)
                        )
                    """)
                    await db.execute(f"""
                        CREATE INDEX IF NOT EXISTS idx_{self.TABLE}_expires_at
                        ON {self.TABLE}(expires_at)
                    """)
                    await db.commit()
            except (sqlite3.Error, OSError) as e:
                raise CacheBackendError(self.name, f"schema init failed: {e}") from e
            self._schema_ready = True

    async def get(self, key: str) -> Optional[CacheEntry]:
        await self._ensure_schema()
        try:
            async with aiosqlite.connect(self.db_path) as db:
                async with db.execute(
                    f"SELECT value FROM {self.TABLE} WHERE namespace = ? AND cache_key = ?",
                    (self.namespace, key),
                ) as cursor:
                    row = await cursor.fetchone()
        except sqlite3.Error as e:
            raise CacheBackendError(self.name, f"read failed: {e}") from e

        if row is None:
            return None
        try:
            payload = json.loads(row[0])
            return CacheEntry(
                data=payload["data"],
                created_at=float(payload["created_at"]),
                ttl=float(payload["ttl"]),
            )
        except (ValueError, KeyError, TypeError) as e:
            raise CacheBackendError(self.name, f"corrupt entry for {key}: {e}") from e

    async def set(self, key: str, entry: CacheEntry) -> None:
        await self._ensure_schema()
        try:
            value = json.dumps(
                {"data": entry.data, "created_at": entry.created_at, "ttl": entry.ttl},
                ensure_ascii=False,
            )
        except (TypeError, ValueError) as e:
            raise CacheBackendError(self.name, f"value not serializable: {e}") from e
        try:
            await self._write(
                f"""
                INSERT OR REPLACE INTO {self.TABLE}
                (namespace, cache_key, value, created_at, expires_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (self.namespace, key, value, entry.created_at, entry.created_at + entry.ttl),
            )
        except sqlite3.Error as e:
            raise CacheBackendError(self.name, f"write failed: {e}") from e

    async def delete(self, key: str) -> None:
        await self._ensure_schema()
        try:
            await self._write(
                f"DELETE FROM {self.TABLE} WHERE namespace = ? AND cache_key = ?",
                (self.namespace, key),
            )
        except sqlite3.Error as e:
            raise CacheBackendError(self.name, f"delete failed: {e}") from e

    async def clear(self) -> None:
        await self._ensure_schema()
        try:
            await self._write(
                f"DELETE FROM {self.TABLE} WHERE namespace = ?", (self.namespace,)
            )
        except sqlite3.Error as e:
            raise CacheBackendError(self.name, f"clear failed: {e}") from e

    async def start_session(self, session_id: Optional[str] = None) -> None:
        """Wipe the current session namespace and switch to a new one."""
        await self.clear()
        self.namespace = f"session:{session_id or uuid.uuid4().hex}"
        await self.clear()

    async def cleanup_expired(self, now: Optional[float] = None) -> int:
        """Remove expired rows in this namespace.

        Returns:
            Number of entries removed.
        """
        await self._ensure_schema()
        now = time.time() if now is None else now
        try:
            return await self._write(
                f"DELETE FROM {self.TABLE} WHERE namespace = ? AND expires_at <= ?",
                (self.namespace, now),
            )
        except sqlite3.Error as e:
            raise CacheBackendError(self.name, f"cleanup failed: {e}") from e

    async def count(self) -> int:
        await self._ensure_schema()
        try:
            async with aiosqlite.connect(self.db_path) as db:
                async with db.execute(
                    f"SELECT COUNT(*) FROM {self.TABLE} WHERE namespace = ?",
                    (self.namespace,),
                ) as cursor:
                    row = await cursor.fetchone()
        except sqlite3.Error as e:
            raise CacheBackendError(self.name, f"count failed: {e}") from e
        return row[0] if row else 0

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
        retry=retry_if_exception_type(sqlite3.OperationalError),
        reraise=True,
    )
    async def _write(self, sql: str, params: tuple) -> int:
        """Execute a write, retrying while the database is locked."""
        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(sql, params)
            await db.commit()
            return cursor.rowcount


class TieredCache:
    """Ordered tiers with promotion, write-through and single-flight fetches.

    ``get`` returns the first non-expired hit and copies it into every faster
    tier with that tier's default TTL. ``get_or_fetch`` runs at most one
    fetcher per key; concurrent callers share its value or its exception.
    """

    def __init__(
        self,
        backends: Sequence[CacheBackend],
        clock: Optional[Callable[[], float]] = None,
    ):
        """Initialize the tiered cache.

        Args:
            backends: Tiers ordered fastest first.
            clock: Returns epoch seconds; injectable for expiry tests.
        """
        if not backends:
            raise ValueError("TieredCache needs at least one backend")
        self.backends: List[CacheBackend] = list(backends)
        self.clock = clock or time.time
        self._inflight: Dict[str, "asyncio.Task[Any]"] = {}
        self._stats: Dict[str, Dict[str, int]] = {
            backend.name: {"hits": 0, "misses": 0, "errors": 0}
            for backend in self.backends
        }
        self._inflight_joins = 0

    async def get(self, key: str) -> Any:
        """Get a value, promoting it into faster tiers on a lower-tier hit.

        Returns:
            Cached value if found and not expired, None otherwise.
        """
        now = self.clock()
        for index, backend in enumerate(self.backends):
            try:
                entry = await backend.get(key)
            except CacheBackendError as e:
                self._record_error(backend, "get", e)
                continue

            if entry is not None and entry.is_expired(now):
                await self._safe_delete(backend, key)
                entry = None

            if entry is None:
                self._record(backend, "miss")
                continue

            self._record(backend, "hit")
            logger.debug(f"Cache hit in {backend.name} tier for {key}")
            for faster in self.backends[:index]:
                await self._safe_set(
                    faster, key, CacheEntry(entry.data, now, faster.default_ttl)
                )
            return entry.data
        return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[float] = None,
        tiers: Optional[Iterable[str]] = None,
    ) -> None:
        """Write through every tier, or only the named ``tiers``.

        Each tier uses ``ttl`` when given, else its own default.
        """
        selected = set(tiers) if tiers is not None else None
        now = self.clock()
        for backend in self.backends:
            if selected is not None and backend.name not in selected:
                continue
            entry = CacheEntry(
                data=value,
                created_at=now,
                ttl=ttl if ttl is not None else backend.default_ttl,
            )
            await self._safe_set(backend, key, entry)

    async def get_or_fetch(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[Any]],
        ttl: Optional[float] = None,
    ) -> Any:
        """Return the cached value or fetch it once for all concurrent callers.

        A None result is returned but not cached. The fetcher's exception is
        raised to every caller waiting on it.
        """
        task = self._inflight.get(key)
        if task is None:
            value = await self.get(key)
            if value is not None:
                return value
            task = self._inflight.get(key)

        if task is not None:
            self._inflight_joins += 1
            cache_inflight_joins_total.inc()
            logger.debug(f"Joining in-flight fetch for {key}")
            return await asyncio.shield(task)

        task = asyncio.create_task(self._fetch_and_store(key, fetcher, ttl))
        self._inflight[key] = task
        return await asyncio.shield(task)

    async def _fetch_and_store(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[Any]],
        ttl: Optional[float],
    ) -> Any:
        try:
            value = await fetcher()
            if value is not None:
                await self.set(key, value, ttl=ttl)
            return value
        finally:
            if self._inflight.get(key) is asyncio.current_task():
                del self._inflight[key]

    async def invalidate(self, key: str) -> None:
        """Drop ``key`` from every tier."""
        for backend in self.backends:
            await self._safe_delete(backend, key)

    async def clear(self) -> None:
        """Clear every tier."""
        for backend in self.backends:
            try:
                await backend.clear()
            except CacheBackendError as e:
                self._record_error(backend, "clear", e)

    async def start_session(self, session_id: Optional[str] = None) -> None:
        """Wipe session-scoped tiers and begin a new session namespace."""
        for backend in self.backends:
            if isinstance(backend, SQLiteBackend) and backend.is_session_scoped:
                try:
                    await backend.start_session(session_id)
                except CacheBackendError as e:
                    self._record_error(backend, "start_session", e)

    async def cleanup_expired(self) -> int:
        """Remove expired rows from the SQLite tiers.

        Returns:
            Number of entries removed.
        """
        removed = 0
        now = self.clock()
        for backend in self.backends:
            if isinstance(backend, SQLiteBackend):
                try:
                    removed += await backend.cleanup_expired(now)
                except CacheBackendError as e:
                    self._record_error(backend, "cleanup", e)
        return removed

    def get_stats(self) -> dict:
        """Get per-tier statistics.

        Returns:
            Dict with hits, misses and errors per tier, plus combined metrics.
        """
        hits = sum(s["hits"] for s in self._stats.values())
        first = self._stats[self.backends[0].name]
        total_requests = first["hits"] + first["misses"] + first["errors"]
        return {
            "tiers": {name: dict(stats) for name, stats in self._stats.items()},
            "total_requests": total_requests,
            "combined_hit_ratio": hits / total_requests if total_requests > 0 else 0,
            "inflight": len(self._inflight),
            "inflight_joins": self._inflight_joins,
        }

    async def _safe_set(self, backend: CacheBackend, key: str, entry: CacheEntry) -> None:
        try:
            await backend.set(key, entry)
        except CacheBackendError as e:
            self._record_error(backend, "set", e)

    async def _safe_delete(self, backend: CacheBackend, key: str) -> None:
        try:
            await backend.delete(key)
        except CacheBackendError as e:
            self._record_error(backend, "delete", e)

    def _record(self, backend: CacheBackend, result: str) -> None:
        self._stats[backend.name]["hits" if result == "hit" else "misses"] += 1
        cache_requests_total.labels(tier=backend.name, result=result).inc()

    def _record_error(self, backend: CacheBackend, operation: str, error: Exception) -> None:
        self._stats[backend.name]["errors"] += 1
        cache_backend_errors_total.labels(tier=backend.name, operation=operation).inc()
        logger.warning(f"Cache tier {backend.name} {operation} failed: {error}")
