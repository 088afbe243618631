"""Dictionary-backed store for tests and embedding."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from storm.app import StormApp
from storm.chunk import Chunk
from storm.container import Container
from storm.ids import ChunkId, ContainerId, MesgId
from storm.mesg import Mesg, Topic

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MemoryStore:
    """
    In-memory implementation of the `Store` protocol.

    Entries are indexed by their content-derived ids, so storing the same
    object twice is a no-op. Topics and messages share one id space per
    application; an entry is never replaced by one of the other kind. Every
    operation holds one lock, making the store safe to share between threads.
    """

    _chunks: dict[ChunkId, Chunk] = field(default_factory=dict)
    """Chunks by id."""

    _containers: dict[ContainerId, Container] = field(default_factory=dict)
    """Container manifests by id."""

    _mesgs: dict[StormApp, dict[MesgId, Topic | Mesg]] = field(default_factory=dict)
    """Topics and messages per application, by id."""

    _topics: dict[StormApp, list[MesgId]] = field(default_factory=dict)
    """Topic ids per application, in insertion order."""

    _lock: threading.Lock = field(default_factory=threading.Lock)
    """Guards every index."""

    def get_chunk(self, chunk_id: ChunkId) -> Chunk | None:
        """Retrieve a chunk by its id."""
        with self._lock:
            return self._chunks.get(chunk_id)

    def put_chunk(self, chunk: Chunk) -> ChunkId:
        """Store a chunk under its id."""
        chunk_id = chunk.chunk_id()
        with self._lock:
            self._chunks[chunk_id] = chunk
        return chunk_id

    def has_chunk(self, chunk_id: ChunkId) -> bool:
        """Check if a chunk is stored."""
        with self._lock:
            return chunk_id in self._chunks

    def get_container(self, container_id: ContainerId) -> Container | None:
        """Retrieve a container manifest by its id."""
        with self._lock:
            return self._containers.get(container_id)

    def put_container(self, container: Container) -> ContainerId:
        """Store a container manifest under its id."""
        container_id = container.container_id()
        with self._lock:
            self._containers[container_id] = container
        return container_id

    def has_container(self, container_id: ContainerId) -> bool:
        """Check if a container manifest is stored."""
        with self._lock:
            return container_id in self._containers

    def put_topic(self, app: StormApp, topic: Topic) -> MesgId:
        """Store a topic and list it under `app`."""
        topic_id = topic.mesg_id()
        with self._lock:
            if self._insert(app, topic_id, topic):
                self._topics.setdefault(app, []).append(topic_id)
                logger.debug("Stored %s topic %s", app, topic_id)
        return topic_id

    def put_mesg(self, app: StormApp, mesg: Mesg) -> MesgId:
        """Store a message under `app`."""
        mesg_id = mesg.mesg_id()
        with self._lock:
            if self._insert(app, mesg_id, mesg):
                logger.debug("Stored %s message %s", app, mesg_id)
        return mesg_id

    def _insert(self, app: StormApp, mesg_id: MesgId, entry: Topic | Mesg) -> bool:
        """Add `entry` unless the id is taken. Caller holds the lock."""
        entries = self._mesgs.setdefault(app, {})
        existing = entries.get(mesg_id)
        if existing is None:
            entries[mesg_id] = entry
            return True
        if type(existing) is not type(entry):
            logger.warning(
                "Keeping %s %s %s; not replacing it with a %s",
                app,
                type(existing).__name__.lower(),
                mesg_id,
                type(entry).__name__.lower(),
            )
        return False

    def get_mesg(self, app: StormApp, mesg_id: MesgId) -> Topic | Mesg | None:
        """Retrieve a topic or message of `app` by its id."""
        with self._lock:
            return self._mesgs.get(app, {}).get(mesg_id)

    def has_mesg(self, app: StormApp, mesg_id: MesgId) -> bool:
        """Check if a topic or message of `app` is stored."""
        with self._lock:
            return mesg_id in self._mesgs.get(app, {})

    def topic_ids(self, app: StormApp) -> list[MesgId]:
        """List the topic ids of `app` in the order they were stored."""
        with self._lock:
            return list(self._topics.get(app, ()))
