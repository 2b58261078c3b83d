"""Non-blocking TCP transport with readiness polling."""

from __future__ import annotations

import enum
import errno
import selectors
import socket
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .config import DEFAULT_BUFFER_SIZE
from .exceptions import RTSPTransportError
from .utils import logger

_IN_PROGRESS = (errno.EINPROGRESS, errno.EALREADY, errno.EWOULDBLOCK, errno.EAGAIN)

class EventKind(enum.Enum):
    CONNECTABLE = "connectable"
    READABLE = "readable"
    WRITABLE = "writable"
    ERROR = "error"

@dataclass(frozen=True)
class TransportEvent:
    kind: EventKind
    error: Optional[BaseException] = None

class TransportBase:
    connected: bool = False

    def connect_async(self, remote: Tuple[str, int], local: Optional[Tuple[str, int]] = None) -> None:
        raise NotImplementedError

    def finish_connect(self) -> bool:
        raise NotImplementedError

    def register(self, connectable: bool, readable: bool, writable: bool) -> None:
        raise NotImplementedError

    def poll_events(self, timeout: float) -> List[TransportEvent]:
        raise NotImplementedError

    def read(self) -> bytes:
        raise NotImplementedError

    def write(self, data: bytes) -> int:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError

# TCPTransport - one non-blocking socket watched by a selector
class TCPTransport(TransportBase):
    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE):
        self.buffer_size = int(buffer_size)
        self.connected = False
        self._sock: Optional[socket.socket] = None
        self._selector: Optional[selectors.BaseSelector] = None
        self._interest = (False, False, False)
        self._remote: Optional[Tuple[str, int]] = None

    def connect_async(self, remote: Tuple[str, int], local: Optional[Tuple[str, int]] = None) -> None:
        if self._sock is not None:
            raise RTSPTransportError("Transport already opened")
        self._remote = remote
        try:
            infos = socket.getaddrinfo(remote[0], remote[1], type=socket.SOCK_STREAM)
        except OSError as exc:
            raise RTSPTransportError(f"cannot resolve {remote[0]}: {exc}") from exc
        if not infos:
            raise RTSPTransportError(f"cannot resolve {remote[0]}")
        family, socktype, proto, _, sockaddr = infos[0]
        try:
            s = socket.socket(family, socktype, proto)
        except OSError as exc:
            raise RTSPTransportError(str(exc)) from exc
        self._sock = s
        self._selector = selectors.DefaultSelector()
        try:
            s.setblocking(False)
            if local is not None:
                s.bind(local)
            rc = s.connect_ex(sockaddr)
        except OSError as exc:
            self.close()
            raise RTSPTransportError(f"connect to {remote[0]}:{remote[1]} failed: {exc}") from exc
        if rc == 0:
            self.connected = True
            logger.debug("TCPTransport connected to %s:%d", remote[0], remote[1])
        elif rc not in _IN_PROGRESS:
            self.close()
            raise RTSPTransportError(f"connect to {remote[0]}:{remote[1]} failed: {errno.errorcode.get(rc, rc)}")
        else:
            logger.debug("TCPTransport connecting to %s:%d", remote[0], remote[1])

    def finish_connect(self) -> bool:
        if self.connected:
            return True
        if not self._sock:
            raise RTSPTransportError("Not connected")
        err = self._sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        if err in _IN_PROGRESS:
            return False
        if err != 0:
            raise RTSPTransportError(f"connect failed: {errno.errorcode.get(err, err)}")
        try:
            self._sock.getpeername()
        except OSError:
            # still in progress
            return False
        self.connected = True
        logger.debug("TCPTransport connected to %s:%d", self._remote[0], self._remote[1])
        return True

    def register(self, connectable: bool, readable: bool, writable: bool) -> None:
        if not self._sock or not self._selector:
            raise RTSPTransportError("Not connected")
        mask = 0
        if connectable or writable:
            mask |= selectors.EVENT_WRITE
        if readable:
            mask |= selectors.EVENT_READ
        registered = self._sock in self._selector.get_map()
        if mask == 0:
            if registered:
                self._selector.unregister(self._sock)
        elif registered:
            self._selector.modify(self._sock, mask)
        else:
            self._selector.register(self._sock, mask)
        self._interest = (connectable, readable, writable)

    def poll_events(self, timeout: float) -> List[TransportEvent]:
        if not self._selector:
            raise RTSPTransportError("Not connected")
        try:
            ready = self._selector.select(timeout)
        except OSError as exc:
            return [TransportEvent(EventKind.ERROR, RTSPTransportError(str(exc)))]
        connectable, readable, writable = self._interest
        events: List[TransportEvent] = []
        for _key, mask in ready:
            if mask & selectors.EVENT_WRITE:
                if connectable and not self.connected:
                    events.append(TransportEvent(EventKind.CONNECTABLE))
                elif writable:
                    events.append(TransportEvent(EventKind.WRITABLE))
            if mask & selectors.EVENT_READ and readable:
                events.append(TransportEvent(EventKind.READABLE))
        return events

    def read(self) -> bytes:
        """Drain everything currently available. b'' means the peer closed."""
        if not self._sock:
            raise RTSPTransportError("Not connected")
        chunks = []
        while True:
            try:
                data = self._sock.recv(self.buffer_size)
            except BlockingIOError:
                break
            except OSError as exc:
                raise RTSPTransportError(f"read failed: {exc}") from exc
            if not data:
                break
            chunks.append(data)
        return b"".join(chunks)

    def write(self, data: bytes) -> int:
        if not self._sock or not self.connected:
            raise RTSPTransportError("Not connected")
        try:
            return self._sock.send(data)
        except BlockingIOError:
            return 0
        except OSError as exc:
            raise RTSPTransportError(f"write failed: {exc}") from exc

    def close(self) -> None:
        try:
            if self._selector:
                self._selector.close()
            if self._sock:
                self._sock.close()
                logger.debug("TCPTransport closed")
        finally:
            self._selector = None
            self._sock = None
            self.connected = False
