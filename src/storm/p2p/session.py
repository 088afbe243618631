"""
Transport boundary of the protocol.

The core never opens connections. A `Session` is whatever the embedding
application provides to move frames between two peers: an encrypted stream,
a message queue, or an in-memory pipe in tests.
"""

from __future__ import annotations

from typing import Protocol


class Session(Protocol):
    """
    Protocol for an established, bidirectional frame transport.

    Frame boundaries are preserved: each `send_frame` on one side yields
    exactly one `receive_frame` on the other.
    """

    async def send_frame(self, frame: bytes) -> None:
        """
        Send one frame to the peer.

        Args:
            frame: Encoded message, see `storm.p2p.codec`.
        """
        ...

    async def receive_frame(self) -> bytes | None:
        """
        Receive the next frame from the peer.

        Returns:
            The frame, or None once the peer has closed the session.
        """
        ...

    async def close(self) -> None:
        """Close the session. Further sends are not allowed."""
        ...
