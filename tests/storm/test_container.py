"""Tests for container manifests, splitting and reassembly."""

import logging

import pytest
from hypothesis import given
from hypothesis import strategies as st

from storm.chunk import MAX_CHUNK_LEN, TooLargeData
from storm.config import DEFAULT_CHUNK_SIZE
from storm.container import (
    MAX_CONTAINER_CHUNKS,
    MAX_MANIFEST_LEN,
    ChunkFullId,
    ChunkIdList,
    Container,
    ContainerFullId,
    ContainerInfo,
    MissingChunk,
    manifest_len,
    reassemble,
    split,
)
from storm.ids import ChunkId, ContainerId, MesgId


def _chunk_map(chunks):
    return {chunk.chunk_id(): chunk for chunk in chunks}


class TestSplit:
    """Tests for splitting payloads."""

    def test_three_chunks(self) -> None:
        """Fixed-size chunks, the last one shorter."""
        container, chunks = split(b"a" * 10 + b"b" * 10 + b"c" * 5, 10, mime="text/plain")
        assert [bytes(chunk) for chunk in chunks] == [b"a" * 10, b"b" * 10, b"c" * 5]
        assert container.chunk_count == 3
        assert list(container.chunks) == [chunk.chunk_id() for chunk in chunks]
        assert int(container.size) == 25
        assert container.mime == "text/plain"
        assert int(container.version) == 0

    def test_empty_payload(self) -> None:
        """No bytes, no chunks."""
        container, chunks = split(b"")
        assert chunks == []
        assert container.chunk_count == 0
        assert int(container.size) == 0

    def test_default_chunk_size(self) -> None:
        """The configured default applies when no size is given."""
        _, chunks = split(b"\x00" * (DEFAULT_CHUNK_SIZE + 1))
        assert [len(chunk) for chunk in chunks] == [DEFAULT_CHUNK_SIZE, 1]

    @pytest.mark.parametrize("chunk_size", [0, -1, MAX_CHUNK_LEN + 1])
    def test_invalid_chunk_size(self, chunk_size: int) -> None:
        """Chunk size must be in 1..MAX_CHUNK_LEN."""
        with pytest.raises(ValueError, match="chunk_size"):
            split(b"abc", chunk_size)

    def test_too_many_chunks(self) -> None:
        """A payload needing more than MAX_CONTAINER_CHUNKS chunks is refused."""
        with pytest.raises(TooLargeData):
            split(b"\x00" * (MAX_CONTAINER_CHUNKS + 1), 1)

    def test_manifest_must_fit_one_packet(self) -> None:
        """The header counts against the packet limit, not only the references."""
        with pytest.raises(TooLargeData) as exc_info:
            split(b"\x00" * (MAX_CONTAINER_CHUNKS - 1), 1, mime="", info="x" * 15)
        assert exc_info.value.limit == MAX_MANIFEST_LEN
        assert exc_info.value.actual == MAX_MANIFEST_LEN + 1

    def test_duplicate_chunks_are_kept(self) -> None:
        """Repeated content gives repeated references."""
        container, chunks = split(b"ab" * 3, 2)
        assert len(set(container.chunks)) == 1
        assert container.chunk_count == 3


class TestReassemble:
    """Tests for reassembly."""

    @given(st.binary(max_size=200), st.integers(min_value=1, max_value=64))
    def test_split_then_reassemble(self, payload: bytes, chunk_size: int) -> None:
        """Reassembly returns the input payload."""
        container, chunks = split(payload, chunk_size)
        assert reassemble(container, _chunk_map(chunks)) == payload

    def test_missing_chunk(self) -> None:
        """The first absent chunk is reported."""
        container, chunks = split(b"0123456789", 4)
        lookup = _chunk_map(chunks)
        del lookup[chunks[1].chunk_id()]
        with pytest.raises(MissingChunk) as exc_info:
            reassemble(container, lookup)
        assert exc_info.value.chunk_id == chunks[1].chunk_id()

    def test_chunk_source(self) -> None:
        """Any object with get_chunk works as a source."""
        container, chunks = split(b"0123456789", 4)
        lookup = _chunk_map(chunks)

        class Source:
            def get_chunk(self, chunk_id: ChunkId):
                return lookup.get(chunk_id)

        assert reassemble(container, Source()) == b"0123456789"

    def test_size_mismatch_is_only_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """A wrong declared size does not prevent reassembly."""
        container, chunks = split(b"0123456789", 4)
        wrong = container.model_copy(update={"size": type(container.size)(99)})
        with caplog.at_level(logging.WARNING, logger="storm.container"):
            assert reassemble(wrong, _chunk_map(chunks)) == b"0123456789"
        assert "declares 99 bytes" in caplog.text


class TestContainerId:
    """Tests for container identity."""

    BASE = split(b"0123456789", 4, mime="text/plain", info="digits")[0]

    def test_deterministic(self) -> None:
        """Same manifest, same id."""
        decoded = Container.decode_bytes(self.BASE.encode_bytes())
        assert decoded.container_id() == self.BASE.container_id()
        assert self.BASE.container_id() == ContainerId.commit(self.BASE.encode_bytes())

    @pytest.mark.parametrize(
        "update",
        [
            {"version": 1},
            {"mime": "text/csv"},
            {"info": "numbers"},
            {"size": 11},
        ],
    )
    def test_any_field_change_changes_id(self, update: dict) -> None:
        """Every field is committed to."""
        changed = Container(**{**dict(self.BASE), **update})
        assert changed.container_id() != self.BASE.container_id()

    def test_chunk_order_changes_id(self) -> None:
        """The manifest is ordered."""
        reordered = Container(
            **{**dict(self.BASE), "chunks": ChunkIdList(data=list(self.BASE.chunks)[::-1])}
        )
        assert reordered.container_id() != self.BASE.container_id()

    def test_wire_layout(self) -> None:
        """version, mime, info, size, then the u24-counted chunk list."""
        encoded = self.BASE.encode_bytes()
        assert encoded[:2] == b"\x00\x00"
        assert encoded[2:14] == b"\x0a\x00text/plain"
        assert encoded[14:22] == b"\x06\x00digits"
        assert encoded[22:30] == (10).to_bytes(8, "little")
        assert encoded[30:33] == b"\x03\x00\x00"
        assert len(encoded) == 33 + 3 * 32


class TestRelatedRecords:
    """Tests for header, info and full ids."""

    def test_header_and_info(self) -> None:
        """Info pairs the header with the id of the full manifest."""
        container, _ = split(b"abc", 2, info="x")
        info = container.info_record()
        assert isinstance(info, ContainerInfo)
        assert info.container_id == container.container_id()
        assert info.header.info == "x"
        assert ContainerInfo.decode_bytes(info.encode_bytes()) == info

    def test_full_ids(self) -> None:
        """Full ids print as `child@parent`."""
        container_id = ContainerId(b"\x01" * 32)
        message_id = MesgId(b"\x02" * 32)
        chunk_id = ChunkId(b"\x03" * 32)
        assert str(ContainerFullId(message_id=message_id, container_id=container_id)) == (
            f"{'01' * 32}@{'02' * 32}"
        )
        assert str(ChunkFullId(container_id=container_id, chunk_id=chunk_id)) == (
            f"{'03' * 32}@{'01' * 32}"
        )


class TestManifestLen:
    """Tests for the one-packet bound on serialized manifests."""

    FILLER = [ChunkId.commit(b"")] * (MAX_CONTAINER_CHUNKS - 1)

    def _container(self, info: str, chunk_ids: list[ChunkId]) -> Container:
        return Container(
            version=0, mime="", info=info, size=0, chunks=ChunkIdList(data=chunk_ids)
        )

    def test_header_plus_references(self) -> None:
        """Header bytes, a 3-byte count, then 32 bytes per reference."""
        container, _ = split(b"0123456789", 4, mime="text/plain", info="digits")
        expected = len(container.encode_bytes())
        assert manifest_len(container.header(), container.chunk_count) == expected

    def test_largest_manifest_fits(self) -> None:
        """A manifest of exactly MAX_MANIFEST_LEN bytes is accepted."""
        container = self._container("x" * 14, self.FILLER)
        assert len(container.encode_bytes()) == MAX_MANIFEST_LEN

    def test_one_byte_over_is_refused(self) -> None:
        """One more byte of description no longer fits."""
        with pytest.raises(TooLargeData) as exc_info:
            self._container("x" * 15, self.FILLER)
        assert exc_info.value.actual == MAX_MANIFEST_LEN + 1

    def test_full_reference_list_is_refused(self) -> None:
        """MAX_CONTAINER_CHUNKS references leave no room for the header."""
        with pytest.raises(TooLargeData) as exc_info:
            self._container("", self.FILLER + [ChunkId.commit(b"")])
        assert exc_info.value.actual == 2**24 + 17
