"""Tests for request handling and the legal exchange table."""

from __future__ import annotations

import logging

import anyio
import pytest

from storm.app import StormApp
from storm.chunk import Chunk
from storm.container import reassemble, split
from storm.ids import ChunkId, ContainerId, MesgId
from storm.mesg import new_topic, reply
from storm.p2p import (
    Accept,
    ActiveApps,
    AnnounceContainer,
    AppTopics,
    ChunkIdSet,
    Decline,
    ExchangeHandler,
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
    StormMessage,
    decode_message,
    encode_message,
    is_legal_response,
    is_refusal,
    is_request,
)
from storm.storage import MemoryStore
from tests.storm.helpers import MemorySession, make_stored_container, session_pair

APP = StormApp.FILE_TRANSFER
PAYLOAD = b"0123456789"


@pytest.fixture
def store() -> MemoryStore:
    """An empty in-memory store."""
    return MemoryStore()


@pytest.fixture
def handler(store: MemoryStore) -> ExchangeHandler:
    """A handler running the chat and file-transfer apps."""
    return ExchangeHandler(store, [StormApp.CHAT, APP])


class _KnownParentsStore(MemoryStore):
    """Reports every id as stored, so posts are never refused for their parent."""

    def has_mesg(self, app: StormApp, mesg_id: MesgId) -> bool:
        return True


class _ManyTopicsStore(MemoryStore):
    """Lists more topics than one AppTopics message can carry."""

    def topic_ids(self, app: StormApp) -> list[MesgId]:
        return [MesgId(i.to_bytes(32, "big")) for i in range(MesgIdSet.LIMIT + 5)]


class TestDiscovery:
    """Tests for application and topic listing."""

    def test_list_apps(self, handler: ExchangeHandler) -> None:
        """The active apps are reported in code order."""
        [response] = handler.handle(ListApps())
        assert isinstance(response, ActiveApps)
        assert list(response.apps) == [StormApp.CHAT, APP]
        assert is_legal_response(ListApps(), response)

    def test_list_topics(self, handler: ExchangeHandler, store: MemoryStore) -> None:
        """Stored topics of the app are reported."""
        topic_id = store.put_topic(APP, new_topic(APP, b"t"))
        request = ListTopics(app=APP)
        [response] = handler.handle(request)
        assert isinstance(response, AppTopics)
        assert list(response.topics) == [topic_id]
        assert is_legal_response(request, response)

    def test_list_topics_is_capped(self) -> None:
        """A listing never exceeds what one AppTopics message can carry."""
        handler = ExchangeHandler(_ManyTopicsStore(), [APP])
        request = ListTopics(app=APP)
        [response] = handler.handle(request)
        assert isinstance(response, AppTopics)
        assert len(response.topics) == MesgIdSet.LIMIT
        assert is_legal_response(request, response)

    def test_list_topics_of_inactive_app(self, handler: ExchangeHandler) -> None:
        """An inactive app has no topics."""
        [response] = handler.handle(ListTopics(app=StormApp.SEARCH))
        assert isinstance(response, AppTopics)
        assert len(response.topics) == 0


class TestTopicsAndMessages:
    """Tests for proposing, posting and reading."""

    def test_propose_topic_is_accepted_silently(
        self, handler: ExchangeHandler, store: MemoryStore
    ) -> None:
        """No reply means the topic was accepted."""
        topic = new_topic(APP, b"new")
        assert handler.handle(ProposeTopic(app=APP, topic=topic)) == []
        assert store.topic_ids(APP) == [topic.mesg_id()]

    def test_propose_topic_for_inactive_app(self, handler: ExchangeHandler) -> None:
        """Topics for apps this node does not run are declined."""
        topic = new_topic(StormApp.SEARCH, b"new")
        request = ProposeTopic(app=StormApp.SEARCH, topic=topic)
        [response] = handler.handle(request)
        assert response == Decline(app=StormApp.SEARCH, mesg_id=topic.mesg_id())
        assert is_legal_response(request, response)

    def test_post_with_known_parent(self, handler: ExchangeHandler, store: MemoryStore) -> None:
        """A reply to a stored topic is accepted and stored."""
        topic_id = store.put_topic(APP, new_topic(APP, b"q"))
        mesg = reply(topic_id, b"a")
        request = Post(app=APP, mesg=mesg)
        [response] = handler.handle(request)
        assert response == Accept(app=APP, mesg_id=mesg.mesg_id())
        assert is_legal_response(request, response)
        assert store.has_mesg(APP, mesg.mesg_id())

    def test_post_with_unknown_parent(self, handler: ExchangeHandler, store: MemoryStore) -> None:
        """A reply to an unknown id is declined."""
        mesg = reply(MesgId.commit(b"unknown"), b"a")
        [response] = handler.handle(Post(app=APP, mesg=mesg))
        assert isinstance(response, Decline)
        assert is_refusal(response)
        assert not store.has_mesg(APP, mesg.mesg_id())

    def test_read_message(self, handler: ExchangeHandler, store: MemoryStore) -> None:
        """Reading a message returns it in a Post."""
        topic_id = store.put_topic(APP, new_topic(APP, b"q"))
        mesg_id = store.put_mesg(APP, reply(topic_id, b"a"))
        request = Read(app=APP, mesg_id=mesg_id)
        [response] = handler.handle(request)
        assert isinstance(response, Post)
        assert response.mesg.mesg_id() == mesg_id
        assert is_legal_response(request, response)

    def test_read_topic(self, handler: ExchangeHandler, store: MemoryStore) -> None:
        """Reading a topic returns it in a ProposeTopic."""
        topic_id = store.put_topic(APP, new_topic(APP, b"q"))
        request = Read(app=APP, mesg_id=topic_id)
        [response] = handler.handle(request)
        assert isinstance(response, ProposeTopic)
        assert is_legal_response(request, response)

    def test_read_unknown(self, handler: ExchangeHandler) -> None:
        """Reading an unknown id is declined."""
        request = Read(app=APP, mesg_id=MesgId.commit(b"unknown"))
        [response] = handler.handle(request)
        assert response == Decline(app=APP, mesg_id=request.mesg_id)
        assert is_legal_response(request, response)


class TestContainers:
    """Tests for serving containers and chunks."""

    def test_pull_container(self, handler: ExchangeHandler, store: MemoryStore) -> None:
        """A container referenced by the named topic is served."""
        container, _, topic_id = make_stored_container(store, APP, PAYLOAD, 4)
        request = PullContainer(
            app=APP, message_id=topic_id, container_id=container.container_id()
        )
        [response] = handler.handle(request)
        assert response == PushContainer(app=APP, container=container)
        assert is_legal_response(request, response)

    def test_pull_container_without_access(
        self, handler: ExchangeHandler, store: MemoryStore
    ) -> None:
        """Knowing the container id is not enough."""
        container, _, _ = make_stored_container(store, APP, PAYLOAD, 4)
        unrelated = store.put_topic(APP, new_topic(APP, b"unrelated"))
        request = PullContainer(
            app=APP, message_id=unrelated, container_id=container.container_id()
        )
        [response] = handler.handle(request)
        assert isinstance(response, Reject)
        assert response.full_id == request.full_id

    def test_pull_chunk_partial(self, handler: ExchangeHandler, store: MemoryStore) -> None:
        """Served chunks come first, then one Reject for the rest."""
        container, chunks, topic_id = make_stored_container(store, APP, PAYLOAD, 4)
        stranger = Chunk(b"not listed")
        store.put_chunk(stranger)
        request = PullChunk(
            app=APP,
            message_id=topic_id,
            container_id=container.container_id(),
            chunk_ids=ChunkIdSet(data=[chunks[0].chunk_id(), stranger.chunk_id()]),
        )
        responses = handler.handle(request)
        assert [type(response) for response in responses] == [PushChunk, Reject]
        assert responses[0].chunk == chunks[0]
        assert all(is_legal_response(request, response) for response in responses)

    def test_push_chunk_is_stored_when_it_matches(
        self, handler: ExchangeHandler, store: MemoryStore
    ) -> None:
        """Pushed chunks are verified against their id."""
        good = Chunk(b"good")
        container_id = ContainerId.commit(b"c")
        handler.handle(
            PushChunk(app=APP, container_id=container_id, chunk_id=good.chunk_id(), chunk=good)
        )
        handler.handle(
            PushChunk(
                app=APP,
                container_id=container_id,
                chunk_id=ChunkId.commit(b"other"),
                chunk=Chunk(b"bad"),
            )
        )
        assert store.has_chunk(good.chunk_id())
        assert not store.has_chunk(Chunk(b"bad").chunk_id())

    def test_announce_has_no_reply(self, handler: ExchangeHandler) -> None:
        """Announcements are notifications."""
        container, _ = split(PAYLOAD, 4)
        message = AnnounceContainer(app=APP, info=container.info_record())
        assert handler.handle(message) == []
        assert not is_request(message)


class TestAppIsolation:
    """Topics and messages of one app are invisible under another app's code."""

    OWNER = StormApp.CHAT

    def test_read_under_other_app_is_declined(
        self, handler: ExchangeHandler, store: MemoryStore
    ) -> None:
        """A chat topic cannot be read as a file-transfer topic."""
        topic_id = store.put_topic(self.OWNER, new_topic(self.OWNER, b"q"))
        request = Read(app=APP, mesg_id=topic_id)
        [response] = handler.handle(request)
        assert response == Decline(app=APP, mesg_id=topic_id)
        assert is_legal_response(request, response)

    def test_post_under_other_app_is_declined(
        self, handler: ExchangeHandler, store: MemoryStore
    ) -> None:
        """A reply to a chat topic is refused when posted as file-transfer."""
        topic_id = store.put_topic(self.OWNER, new_topic(self.OWNER, b"q"))
        mesg = reply(topic_id, b"a")
        [response] = handler.handle(Post(app=APP, mesg=mesg))
        assert response == Decline(app=APP, mesg_id=mesg.mesg_id())
        assert not store.has_mesg(APP, mesg.mesg_id())
        assert not store.has_mesg(self.OWNER, mesg.mesg_id())

    def test_pull_under_other_app_is_rejected(
        self, handler: ExchangeHandler, store: MemoryStore
    ) -> None:
        """A chat topic grants no access to containers under file-transfer."""
        container, chunks, topic_id = make_stored_container(store, self.OWNER, PAYLOAD, 4)
        container_id = container.container_id()

        pull = PullContainer(app=APP, message_id=topic_id, container_id=container_id)
        [response] = handler.handle(pull)
        assert isinstance(response, Reject)
        assert response.full_id == pull.full_id

        pull_chunk = PullChunk(
            app=APP,
            message_id=topic_id,
            container_id=container_id,
            chunk_ids=ChunkIdSet(data=[chunks[0].chunk_id()]),
        )
        assert [type(response) for response in handler.handle(pull_chunk)] == [Reject]

    def test_same_request_under_owning_app_succeeds(
        self, handler: ExchangeHandler, store: MemoryStore
    ) -> None:
        """The refusals above are due to the app alone."""
        container, _, topic_id = make_stored_container(store, self.OWNER, PAYLOAD, 4)
        pull = PullContainer(
            app=self.OWNER, message_id=topic_id, container_id=container.container_id()
        )
        [response] = handler.handle(pull)
        assert isinstance(response, PushContainer)


class TestSharedIdSpace:
    """Topics and replies whose ids coincide."""

    FILLER = b"\x07" * 30
    TOPIC = new_topic(APP, FILLER + b"\x00\x00")
    MESG = reply(MesgId(b"\x20\x00" + FILLER), b"")

    def test_ids_coincide(self) -> None:
        """Both kinds commit under the same label."""
        assert self.TOPIC.mesg_id() == self.MESG.mesg_id()

    def test_topic_over_message_is_declined(
        self, handler: ExchangeHandler, store: MemoryStore
    ) -> None:
        """A topic whose id is taken by a message is declined, not stored."""
        mesg_id = store.put_mesg(APP, self.MESG)
        [response] = handler.handle(ProposeTopic(app=APP, topic=self.TOPIC))
        assert response == Decline(app=APP, mesg_id=mesg_id)
        assert store.get_mesg(APP, mesg_id) == self.MESG
        assert store.topic_ids(APP) == []

    def test_message_over_topic_is_declined(self) -> None:
        """A message whose id is taken by a topic is declined, not stored."""
        store = _KnownParentsStore()
        handler = ExchangeHandler(store, [APP])
        topic_id = store.put_topic(APP, self.TOPIC)
        [response] = handler.handle(Post(app=APP, mesg=self.MESG))
        assert response == Decline(app=APP, mesg_id=topic_id)
        assert store.get_mesg(APP, topic_id) == self.TOPIC


class TestLegalResponses:
    """Tests for the exchange table."""

    def test_requests(self) -> None:
        """Requests open exchanges; refusals and pushes do not."""
        assert is_request(ListApps())
        assert is_request(Read(app=APP, mesg_id=MesgId.commit(b"")))
        assert not is_request(Accept(app=APP, mesg_id=MesgId.commit(b"")))

    def test_wrong_type(self) -> None:
        """Accept never answers a Read."""
        mesg_id = MesgId.commit(b"x")
        request = Read(app=APP, mesg_id=mesg_id)
        assert not is_legal_response(request, Accept(app=APP, mesg_id=mesg_id))

    def test_wrong_id(self) -> None:
        """A Decline for a different id does not answer the request."""
        request = Read(app=APP, mesg_id=MesgId.commit(b"x"))
        assert not is_legal_response(request, Decline(app=APP, mesg_id=MesgId.commit(b"y")))

    def test_wrong_app(self) -> None:
        """Responses stay within the app of the request."""
        mesg_id = MesgId.commit(b"x")
        assert not is_legal_response(
            Read(app=APP, mesg_id=mesg_id), Decline(app=StormApp.CHAT, mesg_id=mesg_id)
        )

    def test_push_chunk_must_be_requested(self) -> None:
        """Only requested chunks answer a PullChunk."""
        chunk = Chunk(b"x")
        container_id = ContainerId.commit(b"c")
        request = PullChunk(
            app=APP,
            message_id=MesgId.commit(b"m"),
            container_id=container_id,
            chunk_ids=ChunkIdSet(data=[ChunkId.commit(b"y")]),
        )
        response = PushChunk(
            app=APP, container_id=container_id, chunk_id=chunk.chunk_id(), chunk=chunk
        )
        assert not is_legal_response(request, response)


async def _request(session: MemorySession, message: StormMessage) -> StormMessage:
    await session.send_frame(encode_message(message))
    frame = await session.receive_frame()
    assert frame is not None
    return decode_message(frame)


class TestServe:
    """End-to-end exchanges over an in-memory session."""

    @pytest.mark.anyio
    async def test_pull_container_then_chunks(
        self, handler: ExchangeHandler, store: MemoryStore
    ) -> None:
        """Fetch a three-chunk container and reassemble it."""
        container, _, topic_id = make_stored_container(store, APP, PAYLOAD, 4)
        container_id = container.container_id()
        client, server = session_pair()

        with anyio.fail_after(5):
            async with anyio.create_task_group() as tg:
                tg.start_soon(handler.serve, server)

                request = PullContainer(app=APP, message_id=topic_id, container_id=container_id)
                response = await _request(client, request)
                assert isinstance(response, PushContainer)
                assert is_legal_response(request, response)
                manifest = response.container
                assert manifest.chunk_count == 3

                pull = PullChunk(
                    app=APP,
                    message_id=topic_id,
                    container_id=container_id,
                    chunk_ids=ChunkIdSet(data=manifest.chunks),
                )
                await client.send_frame(encode_message(pull))
                received: dict[ChunkId, Chunk] = {}
                for _ in range(3):
                    frame = await client.receive_frame()
                    assert frame is not None
                    push = decode_message(frame)
                    assert isinstance(push, PushChunk)
                    assert is_legal_response(pull, push)
                    received[push.chunk_id] = push.chunk

                payload = reassemble(manifest, received)
                assert payload == PAYLOAD
                assert len(payload) == int(manifest.size)

                await client.close()

    @pytest.mark.anyio
    async def test_pull_unknown_container_is_rejected(self, handler: ExchangeHandler) -> None:
        """The only reply to an unknown container is a Reject."""
        client, server = session_pair()
        request = PullContainer(
            app=APP,
            message_id=MesgId.commit(b"m"),
            container_id=ContainerId.commit(b"unknown"),
        )

        with anyio.fail_after(5):
            async with anyio.create_task_group() as tg:
                tg.start_soon(handler.serve, server)
                response = await _request(client, request)
                assert isinstance(response, Reject)
                assert is_refusal(response)
                assert is_legal_response(request, response)
                await client.close()

    @pytest.mark.anyio
    async def test_undecodable_frame_is_dropped(
        self, handler: ExchangeHandler, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A bad frame is logged; the session keeps working."""
        client, server = session_pair()

        with caplog.at_level(logging.WARNING, logger="storm.p2p.exchange"):
            with anyio.fail_after(5):
                async with anyio.create_task_group() as tg:
                    tg.start_soon(handler.serve, server)
                    await client.send_frame(b"\xff\xff")
                    response = await _request(client, ListApps())
                    assert isinstance(response, ActiveApps)
                    await client.close()

        assert "Dropping undecodable frame" in caplog.text
