"""RTSPClient: drives one negotiation over one non-blocking connection.

The loop is the only writer on the socket. Each cycle it queues the next
request if none is outstanding, polls the transport for readiness with a
bounded wait, feeds any reply to the state machine, then paces itself. All
waits go through the stop event so ``stop()`` takes effect between cycles.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from .builder import build_request
from .config import ClientConfig
from .exceptions import RTSPError, RTSPTransportError
from .parser import parse
from .state import Command, Session, SessionStateMachine, State
from .transport import EventKind, TCPTransport, TransportBase
from .utils import logger, parse_rtsp_url, truncate

log = logging.getLogger("rtspnego.client")

@dataclass
class ClientResult:
    state: State
    session_id: Optional[str]
    track_descriptor: Optional[str]
    error: Optional[RTSPError] = None
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.state is State.EXIT

    def as_dict(self) -> dict:
        return {
            'state': self.state.value,
            'ok': self.ok,
            'session_id': self.session_id,
            'track_descriptor': self.track_descriptor,
            'error': str(self.error) if self.error else None,
            'error_kind': type(self.error).__name__ if self.error else None,
            'cancelled': self.cancelled,
        }

class RTSPClient:
    """Negotiates OPTIONS..TEARDOWN against ``url`` on ``remote_address``."""

    def __init__(self,
                 remote_address: Tuple[str, int],
                 url: str,
                 config: Optional[ClientConfig] = None,
                 transport: Optional[TransportBase] = None,
                 clock: Optional[Callable[[], float]] = None):
        parse_rtsp_url(url)
        self.url = url
        self.remote_address = (remote_address[0], int(remote_address[1]))
        self.config = config or ClientConfig()
        self.transport = transport or TCPTransport(self.config.recv_buffer_size)
        self.clock = clock or time.monotonic
        self.machine = SessionStateMachine(Session(), strict_cseq=self.config.strict_cseq)
        self._stop_event = threading.Event()
        self._outbox = bytearray()
        self._sent_at: Optional[float] = None
        self._opened = False
        self._closed = False
        if self.config.debug:
            logger.setLevel(logging.DEBUG)
            log.setLevel(logging.DEBUG)

    @property
    def session(self) -> Session:
        return self.machine.session

    @property
    def state(self) -> State:
        return self.machine.state

    def stop(self) -> None:
        self._stop_event.set()

    def start(self) -> threading.Thread:
        """Run the negotiation on a daemon thread."""
        t = threading.Thread(target=self.run, name="rtspnego-client", daemon=True)
        t.start()
        return t

    def connect(self) -> bool:
        """Open the connection, waiting at most ``connect_timeout``.

        Returns False if stopped before the connection completed.
        Raises RTSPTransportError on failure or timeout.
        """
        self._opened = True
        self.transport.connect_async(self.remote_address, self.config.local_bind_address)
        deadline = self.clock() + self.config.connect_timeout
        self.transport.register(connectable=True, readable=False, writable=False)
        while not self.transport.finish_connect():
            if self._stop_event.is_set():
                return False
            remaining = deadline - self.clock()
            if remaining <= 0:
                raise RTSPTransportError(
                    f"connect to {self.remote_address[0]}:{self.remote_address[1]} timed out "
                    f"after {self.config.connect_timeout:.1f}s")
            events = self.transport.poll_events(min(self.config.poll_timeout, remaining))
            for event in events:
                if event.kind is EventKind.ERROR:
                    raise event.error or RTSPTransportError("connect failed")
            if any(e.kind is EventKind.CONNECTABLE for e in events):
                if self.transport.finish_connect():
                    break
                self._stop_event.wait(min(self.config.connect_retry_delay, remaining))
        log.info('Connected to %s:%d', self.remote_address[0], self.remote_address[1])
        return True

    def run(self, stop_event: Optional[threading.Event] = None) -> ClientResult:
        if stop_event is not None:
            self._stop_event = stop_event
        try:
            if not self._opened and not self.connect():
                return self.result()
            while not self.machine.is_terminal and not self._stop_event.is_set():
                self._cycle()
                if self.machine.is_terminal:
                    break
                self._stop_event.wait(self.config.cycle_delay)
        except RTSPError as exc:
            self.machine.fail(exc)
        finally:
            self.close()
        return self.result()

    def result(self) -> ClientResult:
        s = self.session
        return ClientResult(
            state=s.state,
            session_id=s.session_id,
            track_descriptor=s.track_descriptor,
            error=self.machine.last_error,
            cancelled=self._stop_event.is_set() and not s.state.is_terminal,
        )

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._opened:
            self.transport.close()
            log.info('Client shutdown in state %s', self.state.value)

    # loop internals
    def _cycle(self) -> None:
        if self.transport.connected and not self.session.awaiting_reply:
            command = self.machine.next_command()
            if command is not None:
                self._queue(command)
            elif self.machine.is_terminal:
                return
        self._flush()
        self.transport.register(connectable=False, readable=True, writable=bool(self._outbox))
        for event in self.transport.poll_events(self.config.poll_timeout):
            if event.kind is EventKind.ERROR:
                raise event.error or RTSPTransportError("transport error")
            if event.kind is EventKind.WRITABLE:
                self._flush()
            elif event.kind is EventKind.READABLE:
                self._on_readable()
            if self.machine.is_terminal:
                return
        self._check_response_timeout()

    def _queue(self, command: Command) -> None:
        cseq = self.session.sequence_number
        data = build_request(command, self.url, self.session,
                             client_ports=self.config.client_ports,
                             user_agent=self.config.user_agent)
        self._outbox += data
        self.machine.mark_sent(cseq)
        self._sent_at = self.clock()
        log.debug('Queued %s (CSeq %d)', command.value, cseq)

    def _flush(self) -> None:
        while self._outbox:
            n = self.transport.write(bytes(self._outbox))
            if n <= 0:
                return
            del self._outbox[:n]

    def _on_readable(self) -> None:
        data = self.transport.read()
        if not data:
            raise RTSPTransportError('Connection closed by peer')
        parsed = parse(data)
        log.debug('<<< RESPONSE <<<\n%s', truncate(parsed.raw_text))
        self.machine.feed(parsed)

    def _check_response_timeout(self) -> None:
        timeout = self.config.response_timeout
        if timeout is None or not self.session.awaiting_reply or self._sent_at is None:
            return
        if self.clock() - self._sent_at > timeout:
            raise RTSPTransportError(f'No reply within {timeout:.1f}s')
