"""
Storm peer-to-peer protocol messages.

Each wire message is a record preceded on the wire by its 16-bit type code.
Except for application discovery, every message names the application it
belongs to, so that a node can route it.

Exchanges
---------
- ListApps -> ActiveApps
- ListTopics -> AppTopics
- ProposeTopic -> nothing (accepted) | Decline
- Post -> Accept | Decline
- Read -> Post | ProposeTopic | Decline
- PullContainer -> PushContainer | Reject
- PullChunk -> PushChunk* [Reject]
- AnnounceContainer is a notification and has no reply.

Refusals (Decline, Reject) are ordinary messages, not errors.
"""

from __future__ import annotations

from typing import ClassVar

from storm.app import StormApp
from storm.chunk import Chunk
from storm.container import Container, ContainerFullId, ContainerInfo
from storm.ids import ChunkId, ContainerId, MesgId
from storm.mesg import Mesg, Topic
from storm.types import Record, StrictSet


class StormAppSet(StrictSet[StormApp]):
    """Set of applications, ordered by code."""

    ELEMENT_TYPE = StormApp


class MesgIdSet(StrictSet[MesgId]):
    """Set of topic or message ids."""

    ELEMENT_TYPE = MesgId


class ChunkIdSet(StrictSet[ChunkId]):
    """Set of chunk ids."""

    ELEMENT_TYPE = ChunkId


class StormMessage(Record):
    """Base class of every wire message."""

    TYPE_CODE: ClassVar[int]
    """16-bit wire type code."""

    NAME: ClassVar[str]
    """Display name."""

    def storm_app(self) -> StormApp:
        """The application this message belongs to."""
        return StormApp.SYSTEM

    def __str__(self) -> str:
        return f"{self.NAME}({self.storm_app()})"


class AppMessage(StormMessage):
    """A message scoped to one application."""

    app: StormApp
    """Application the message belongs to."""

    def storm_app(self) -> StormApp:
        return self.app


# -----------------------------------------------------------------------------
# Application discovery
# -----------------------------------------------------------------------------


class ListApps(StormMessage):
    """Ask which applications the peer runs."""

    TYPE_CODE = 0x0002
    NAME = "list-apps"


class ActiveApps(StormMessage):
    """Applications the peer runs."""

    TYPE_CODE = 0x0003
    NAME = "active-apps"

    apps: StormAppSet
    """Active applications."""


# -----------------------------------------------------------------------------
# Topics and messages
# -----------------------------------------------------------------------------


class ListTopics(AppMessage):
    """Ask for the topics of an application."""

    TYPE_CODE = 0x0004
    NAME = "list-topics"


class AppTopics(AppMessage):
    """Topics known for an application."""

    TYPE_CODE = 0x0005
    NAME = "app-topics"

    topics: MesgIdSet
    """Topic ids."""


class ProposeTopic(AppMessage):
    """Offer a new topic. Silence means it was accepted."""

    TYPE_CODE = 0x0006
    NAME = "propose-topic"

    topic: Topic
    """The proposed topic."""


class Post(AppMessage):
    """Deliver a message."""

    TYPE_CODE = 0x0008
    NAME = "post"

    mesg: Mesg
    """The message."""


class Read(AppMessage):
    """Ask for a topic or message by id."""

    TYPE_CODE = 0x000A
    NAME = "read"

    mesg_id: MesgId
    """Requested topic or message."""


class Decline(AppMessage):
    """Refuse a topic, a message, or a read."""

    TYPE_CODE = 0x000C
    NAME = "decline"

    mesg_id: MesgId
    """Refused topic or message."""


class Accept(AppMessage):
    """Acknowledge a posted message."""

    TYPE_CODE = 0x000E
    NAME = "accept"

    mesg_id: MesgId
    """Accepted message."""


# -----------------------------------------------------------------------------
# Containers and chunks
# -----------------------------------------------------------------------------


class PullContainer(AppMessage):
    """
    Ask for a container manifest.

    The message id proves access: it must name a topic or message that
    references the container.
    """

    TYPE_CODE = 0x0010
    NAME = "pull-container"

    message_id: MesgId
    """Topic or message referencing the container."""

    container_id: ContainerId
    """Requested container."""

    @property
    def full_id(self) -> ContainerFullId:
        """The requested container together with its access message."""
        return ContainerFullId(message_id=self.message_id, container_id=self.container_id)


class AnnounceContainer(AppMessage):
    """Tell a peer that a container is available."""

    TYPE_CODE = 0x0011
    NAME = "announce-container"

    info: ContainerInfo
    """Metadata and id of the container."""


class Reject(AppMessage):
    """Refuse a container or chunk request."""

    TYPE_CODE = 0x0012
    NAME = "reject"

    message_id: MesgId
    """Access message of the refused request."""

    container_id: ContainerId
    """Container of the refused request."""

    @property
    def full_id(self) -> ContainerFullId:
        """The refused container together with its access message."""
        return ContainerFullId(message_id=self.message_id, container_id=self.container_id)


class PushContainer(AppMessage):
    """Deliver a container manifest."""

    TYPE_CODE = 0x0013
    NAME = "push-container"

    container: Container
    """The manifest."""


class PullChunk(AppMessage):
    """Ask for chunks of a container."""

    TYPE_CODE = 0x0014
    NAME = "pull-chunk"

    message_id: MesgId
    """Topic or message referencing the container."""

    container_id: ContainerId
    """Container listing the chunks."""

    chunk_ids: ChunkIdSet
    """Requested chunks."""

    @property
    def full_id(self) -> ContainerFullId:
        """The container together with its access message."""
        return ContainerFullId(message_id=self.message_id, container_id=self.container_id)


class PushChunk(AppMessage):
    """Deliver one chunk."""

    TYPE_CODE = 0x0015
    NAME = "push-chunk"

    container_id: ContainerId
    """Container listing the chunk."""

    chunk_id: ChunkId
    """Id of the delivered chunk."""

    chunk: Chunk
    """The chunk bytes."""
