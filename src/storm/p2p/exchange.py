"""
Request/response exchanges of the storm protocol.

Every exchange is a request followed by zero or more responses. Exchanges
are stateless: a response is tied to its request only by the ids it carries,
never by connection state.


LEGAL RESPONSES
---------------
    ListApps       -> ActiveApps
    ListTopics     -> AppTopics
    ProposeTopic   -> Decline (or nothing: the topic was accepted)
    Post           -> Accept | Decline
    Read           -> Post | ProposeTopic | Decline
    PullContainer  -> PushContainer | Reject
    PullChunk      -> PushChunk, one per served chunk, then Reject if any
                      requested chunk was not served


ACCESS RIGHTS
-------------
Containers and chunks are only served to a peer that names a topic or
message referencing the container. Knowing a container id is not enough.

Each application has its own topic and message space: ids are looked up
only under the application named in the request.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Final

from storm.app import StormApp
from storm.ids import ContainerId, MesgId
from storm.mesg import Mesg, Topic
from storm.storage import Store
from storm.types import StrictEncodingError

from .codec import decode_message, encode_message
from .messages import (
    Accept,
    ActiveApps,
    AnnounceContainer,
    AppTopics,
    Decline,
    ListApps,
    ListTopics,
    MesgIdSet,
    Post,
    ProposeTopic,
    PullChunk,
    PullContainer,
    PushChunk,
    PushContainer,
    Read,
    Reject,
    StormAppSet,
    StormMessage,
)
from .session import Session

logger = logging.getLogger(__name__)

RESPONSE_TYPES: Final[Mapping[type[StormMessage], tuple[type[StormMessage], ...]]] = (
    MappingProxyType(
        {
            ListApps: (ActiveApps,),
            ListTopics: (AppTopics,),
            ProposeTopic: (Decline,),
            Post: (Accept, Decline),
            Read: (Post, ProposeTopic, Decline),
            PullContainer: (PushContainer, Reject),
            PullChunk: (PushChunk, Reject),
        }
    )
)
"""Message types that may answer each request type."""


def is_request(message: StormMessage) -> bool:
    """Whether the message opens an exchange."""
    return type(message) in RESPONSE_TYPES


def is_refusal(message: StormMessage) -> bool:
    """Whether the message refuses a request."""
    return isinstance(message, (Decline, Reject))


def is_legal_response(request: StormMessage, response: StormMessage) -> bool:
    """
    Check that `response` may answer `request`.

    Both the message type and the correlating ids must match.
    """
    if type(response) not in RESPONSE_TYPES.get(type(request), ()):
        return False
    if response.storm_app() != request.storm_app():
        return False

    match request, response:
        case ListApps(), ActiveApps():
            return True
        case ListTopics(), AppTopics():
            return True
        case ProposeTopic(topic=topic), Decline(mesg_id=mesg_id):
            return mesg_id == topic.mesg_id()
        case Post(mesg=mesg), Accept(mesg_id=mesg_id) | Decline(mesg_id=mesg_id):
            return mesg_id == mesg.mesg_id()
        case Read(mesg_id=mesg_id), Post(mesg=mesg):
            return mesg.mesg_id() == mesg_id
        case Read(mesg_id=mesg_id), ProposeTopic(topic=topic):
            return topic.mesg_id() == mesg_id
        case Read(mesg_id=mesg_id), Decline(mesg_id=declined):
            return declined == mesg_id
        case PullContainer(container_id=container_id), PushContainer(container=container):
            return container.container_id() == container_id
        case PullContainer() | PullChunk(), Reject():
            return request.full_id == response.full_id  # type: ignore[attr-defined]
        case PullChunk(container_id=container_id, chunk_ids=chunk_ids), PushChunk():
            return (
                response.container_id == container_id
                and response.chunk_id in chunk_ids
                and response.chunk.chunk_id() == response.chunk_id
            )
    return False


class ExchangeHandler:
    """
    Answers inbound protocol messages from a store.

    The handler runs a fixed set of applications. Requests for other
    applications are refused the same way as requests for unknown data.
    Topic listings are capped at the capacity of one `MesgIdSet`.


    HANDLER CONTRACT
    ----------------
    - `handle` never raises for a well-formed message; refusals are returned
      as ordinary messages.
    - Responses and notifications produce no reply. Pushed containers and
      chunks are stored when their content matches their id.
    """

    def __init__(self, store: Store, apps: Iterable[StormApp]) -> None:
        """
        Args:
            store: Source and sink of topics, messages, containers and chunks.
            apps: Applications this node runs.
        """
        self.store = store
        self.apps = frozenset(apps)

    def is_active(self, app: StormApp) -> bool:
        """Whether this node runs `app`."""
        return app in self.apps

    def handle(self, message: StormMessage) -> list[StormMessage]:
        """
        Process one inbound message.

        Returns:
            The replies to send back, in order. Empty for notifications,
            responses and accepted topics.
        """
        logger.debug("Handling %s", message)

        match message:
            case ListApps():
                return [ActiveApps(apps=StormAppSet(data=self.apps))]

            case ListTopics(app=app):
                return [self._on_list_topics(app)]

            case ProposeTopic(app=app, topic=topic):
                return self._on_propose_topic(app, topic)

            case Post(app=app, mesg=mesg):
                return self._on_post(app, mesg)

            case Read(app=app, mesg_id=mesg_id):
                return [self._on_read(app, mesg_id)]

            case PullContainer(app=app, message_id=message_id, container_id=container_id):
                return [self._on_pull_container(app, message_id, container_id)]

            case PullChunk():
                return self._on_pull_chunk(message)

            case PushContainer(container=container):
                container_id = self.store.put_container(container)
                logger.info("Received container %s from peer", container_id)
                return []

            case PushChunk(container_id=container_id, chunk_id=chunk_id, chunk=chunk):
                if chunk.chunk_id() != chunk_id:
                    logger.warning(
                        "Dropping chunk %s of %s: content mismatch", chunk_id, container_id
                    )
                else:
                    self.store.put_chunk(chunk)
                return []

            case AnnounceContainer(info=info):
                logger.info(
                    "Peer announced %s container %s (%d bytes)",
                    info.header.mime,
                    info.container_id,
                    int(info.header.size),
                )
                return []

            case _:
                logger.debug("No reply to %s", message)
                return []

    def _grants_access(self, app: StormApp, message_id: MesgId, container_id: ContainerId) -> bool:
        """Whether `message_id` names a topic or message of `app` referencing the container."""
        mesg = self.store.get_mesg(app, message_id)
        return mesg is not None and container_id in mesg.container_ids.data

    def _on_list_topics(self, app: StormApp) -> AppTopics:
        topics = self.store.topic_ids(app) if self.is_active(app) else []
        if len(topics) > MesgIdSet.LIMIT:
            logger.warning("Listing %d of %d %s topics", MesgIdSet.LIMIT, len(topics), app)
            topics = topics[: MesgIdSet.LIMIT]
        return AppTopics(app=app, topics=MesgIdSet(data=topics))

    def _on_propose_topic(self, app: StormApp, topic: Topic) -> list[StormMessage]:
        topic_id = topic.mesg_id()
        if not self.is_active(app):
            logger.debug("Declining %s topic %s: application not active", app, topic_id)
            return [Decline(app=app, mesg_id=topic_id)]
        if isinstance(self.store.get_mesg(app, topic_id), Mesg):
            logger.warning("Declining %s topic %s: id taken by a message", app, topic_id)
            return [Decline(app=app, mesg_id=topic_id)]
        self.store.put_topic(app, topic)
        logger.info("Accepted %s topic %s", app, topic_id)
        return []

    def _on_post(self, app: StormApp, mesg: Mesg) -> list[StormMessage]:
        mesg_id = mesg.mesg_id()
        if (
            not self.is_active(app)
            or not self.store.has_mesg(app, mesg.parent_id)
            or isinstance(self.store.get_mesg(app, mesg_id), Topic)
        ):
            logger.debug("Declining %s message %s", app, mesg_id)
            return [Decline(app=app, mesg_id=mesg_id)]
        self.store.put_mesg(app, mesg)
        logger.info("Accepted %s message %s", app, mesg_id)
        return [Accept(app=app, mesg_id=mesg_id)]

    def _on_read(self, app: StormApp, mesg_id: MesgId) -> StormMessage:
        found = self.store.get_mesg(app, mesg_id) if self.is_active(app) else None
        match found:
            case Mesg():
                return Post(app=app, mesg=found)
            case Topic():
                return ProposeTopic(app=app, topic=found)
            case _:
                return Decline(app=app, mesg_id=mesg_id)

    def _on_pull_container(
        self, app: StormApp, message_id: MesgId, container_id: ContainerId
    ) -> StormMessage:
        container = None
        if self.is_active(app) and self._grants_access(app, message_id, container_id):
            container = self.store.get_container(container_id)
        if container is None:
            logger.debug("Rejecting pull of container %s", container_id)
            return Reject(app=app, message_id=message_id, container_id=container_id)
        logger.info("Serving container %s", container_id)
        return PushContainer(app=app, container=container)

    def _on_pull_chunk(self, request: PullChunk) -> list[StormMessage]:
        app, container_id = request.app, request.container_id
        reject = Reject(app=app, message_id=request.message_id, container_id=container_id)

        container = None
        if self.is_active(app) and self._grants_access(app, request.message_id, container_id):
            container = self.store.get_container(container_id)
        if container is None:
            logger.debug("Rejecting chunk pull for container %s", container_id)
            return [reject]

        listed = set(container.chunks)
        replies: list[StormMessage] = []
        for chunk_id in request.chunk_ids:
            chunk = self.store.get_chunk(chunk_id) if chunk_id in listed else None
            if chunk is not None:
                replies.append(
                    PushChunk(app=app, container_id=container_id, chunk_id=chunk_id, chunk=chunk)
                )

        served = len(replies)
        logger.info("Serving %d of %d chunks of %s", served, len(request.chunk_ids), container_id)
        if served < len(request.chunk_ids):
            replies.append(reject)
        return replies

    async def serve(self, session: Session) -> None:
        """
        Answer every frame received on `session` until the peer closes it.

        Frames that fail to decode are logged and dropped; the session stays
        open.
        """
        while (frame := await session.receive_frame()) is not None:
            try:
                message = decode_message(frame)
            except StrictEncodingError as e:
                logger.warning("Dropping undecodable frame (%d bytes): %s", len(frame), e)
                continue

            for reply in self.handle(message):
                await session.send_frame(encode_message(reply))
        logger.debug("Session closed by peer")
