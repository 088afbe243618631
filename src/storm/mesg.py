"""
Topics and messages.

A topic starts a thread; a message replies to a topic or to another message.
Both carry an opaque body and reference containers by id instead of
inlining their payloads. The application a topic belongs to is not part of
the record: it travels in the protocol message that carries it.
"""

from __future__ import annotations

import logging
from typing import Iterable

from storm.app import StormApp
from storm.ids import ContainerId, MesgId
from storm.types import MAX_SMALL_LEN, ByteList, Record, StrictList

logger = logging.getLogger(__name__)


class ContainerIdList(StrictList[ContainerId]):
    """Ordered container attachments of a topic or message."""

    ELEMENT_TYPE = ContainerId
    LIMIT = MAX_SMALL_LEN


class Topic(Record):
    """Root of a thread."""

    body: ByteList
    """Opaque application-defined content."""

    container_ids: ContainerIdList
    """Attached containers, in order."""

    def mesg_id(self) -> MesgId:
        """Content-derived identifier of this topic."""
        return MesgId.commit(self.encode_bytes())


class Mesg(Record):
    """A reply to a topic or to another message."""

    parent_id: MesgId
    """Topic or message this one replies to. Its existence is not checked."""

    body: ByteList
    """Opaque application-defined content."""

    container_ids: ContainerIdList
    """Attached containers, in order."""

    def mesg_id(self) -> MesgId:
        """Content-derived identifier of this message."""
        return MesgId.commit(self.encode_bytes())


def new_topic(app: StormApp, body: bytes, container_ids: Iterable[ContainerId] = ()) -> Topic:
    """
    Start a thread for an application.

    The application is not committed to; it only scopes where the topic is
    proposed.
    """
    topic = Topic(body=ByteList(body), container_ids=ContainerIdList(data=container_ids))
    logger.debug("New %s topic %s", app, topic.mesg_id())
    return topic


def reply(parent_id: MesgId, body: bytes, container_ids: Iterable[ContainerId] = ()) -> Mesg:
    """Create a message replying to `parent_id`."""
    return Mesg(
        parent_id=parent_id,
        body=ByteList(body),
        container_ids=ContainerIdList(data=container_ids),
    )
