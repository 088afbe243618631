"""
Storage interface used by the protocol handlers.

Defines the Protocol that every store implementation must follow.
Uses structural subtyping for flexibility.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from storm.app import StormApp
    from storm.chunk import Chunk
    from storm.container import Container
    from storm.ids import ChunkId, ContainerId, MesgId
    from storm.mesg import Mesg, Topic


class Store(Protocol):
    """
    Protocol for storm data storage.

    Any class with matching methods satisfies the protocol.

    Storage Organization
    --------------------
    - Chunks: Indexed by chunk id
    - Containers: Indexed by container id
    - Topics and messages: Indexed by application, then message id. The same
      id stored under two applications names two independent entries.
    """

    # -------------------------------------------------------------------------
    # Chunk Operations
    # -------------------------------------------------------------------------

    def get_chunk(self, chunk_id: ChunkId) -> Chunk | None:
        """
        Retrieve a chunk by its id.

        Returns:
            Chunk if found, None otherwise.
        """
        ...

    def put_chunk(self, chunk: Chunk) -> ChunkId:
        """
        Store a chunk.

        Returns:
            The chunk id it is indexed under.
        """
        ...

    def has_chunk(self, chunk_id: ChunkId) -> bool:
        """Check if a chunk exists in storage."""
        ...

    # -------------------------------------------------------------------------
    # Container Operations
    # -------------------------------------------------------------------------

    def get_container(self, container_id: ContainerId) -> Container | None:
        """
        Retrieve a container manifest by its id.

        Returns:
            Container if found, None otherwise.
        """
        ...

    def put_container(self, container: Container) -> ContainerId:
        """
        Store a container manifest.

        Returns:
            The container id it is indexed under.
        """
        ...

    def has_container(self, container_id: ContainerId) -> bool:
        """Check if a container exists in storage."""
        ...

    # -------------------------------------------------------------------------
    # Topic and Message Operations
    # -------------------------------------------------------------------------

    def put_topic(self, app: StormApp, topic: Topic) -> MesgId:
        """
        Store a topic under an application.

        A message already stored under the same id is kept.

        Returns:
            The topic id.
        """
        ...

    def put_mesg(self, app: StormApp, mesg: Mesg) -> MesgId:
        """
        Store a message under an application.

        A topic already stored under the same id is kept.

        Returns:
            The message id.
        """
        ...

    def get_mesg(self, app: StormApp, mesg_id: MesgId) -> Topic | Mesg | None:
        """
        Retrieve a topic or message of an application by its id.

        Returns:
            The topic or message if found, None otherwise.
        """
        ...

    def has_mesg(self, app: StormApp, mesg_id: MesgId) -> bool:
        """Check if a topic or message of an application exists in storage."""
        ...

    def topic_ids(self, app: StormApp) -> list[MesgId]:
        """
        List the topics known for an application.

        Returns:
            Topic ids, empty if the application has none.
        """
        ...
