"""Report a process's PID and scheduling priority to a kernel module over netlink."""

from __future__ import annotations

import os
import socket
import struct
from typing import Any

NETLINK_USER = 31
NLMSG_ALIGNTO = 4

_HEADER = struct.Struct("=IHHII")  # len, type, flags, seq, pid
_PAYLOAD = struct.Struct("=ii")  # pid, priority
_AF_NETLINK = getattr(socket, "AF_NETLINK", 16)
_SOCK_RAW = getattr(socket, "SOCK_RAW", 3)


def _align(length: int) -> int:
    return (length + NLMSG_ALIGNTO - 1) & ~(NLMSG_ALIGNTO - 1)


NLMSG_HDRLEN = _align(_HEADER.size)
MESSAGE_SIZE = _align(NLMSG_HDRLEN + _PAYLOAD.size)


def build_priority_message(pid: int, priority: int) -> bytes:
    """Build a netlink message carrying ``pid`` and ``priority``; the sender is ``pid``."""
    try:
        header = _HEADER.pack(MESSAGE_SIZE, 0, 0, 0, pid)
        payload = _PAYLOAD.pack(pid, priority)
    except struct.error as exc:
        raise ValueError(f"pid or priority out of range: {exc}") from exc
    body = header.ljust(NLMSG_HDRLEN, b"\0") + payload
    return body.ljust(MESSAGE_SIZE, b"\0")


def parse_priority_message(data: bytes) -> tuple[int, int]:
    """Return ``(pid, priority)`` from a message built by ``build_priority_message``."""
    if len(data) < NLMSG_HDRLEN + _PAYLOAD.size:
        raise ValueError("message too short")
    length = _HEADER.unpack_from(data)[0]
    if length < NLMSG_HDRLEN + _PAYLOAD.size or length > len(data):
        raise ValueError("message length field does not match the data")
    pid, priority = _PAYLOAD.unpack_from(data, NLMSG_HDRLEN)
    return pid, priority


class NetlinkSender:
    """A raw netlink socket bound to this process, sending to the kernel."""

    def __init__(self, protocol: int = NETLINK_USER) -> None:
        self._sock = socket.socket(_AF_NETLINK, _SOCK_RAW, protocol)
        try:
            self._sock.bind((os.getpid(), 0))
        except OSError:
            self._sock.close()
            raise
        self.closed = False

    def send(self, message: bytes) -> int:
        """Send ``message`` to the kernel (unicast); return the bytes sent."""
        if self.closed:
            raise ValueError("sender is closed")
        return self._sock.sendto(message, (0, 0))

    def close(self) -> None:
        if not self.closed:
            self._sock.close()
            self.closed = True

    def __enter__(self) -> "NetlinkSender":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()