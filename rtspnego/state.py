"""Negotiation state machine.

Each state is named after the last command whose reply was accepted, so the
reply to the command sent from a state decides where the machine goes next::

    init --OPTIONS--> options --DESCRIBE--> describe --SETUP--> setup
    setup --PLAY--> play --PAUSE--> pause --TEARDOWN--> teardown -> exit

Any failure lands in ``error``. There is no way back to an earlier state.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from .exceptions import RTSPError, RTSPMissingFieldError, RTSPStatusError
from .parser import ParsedResponse

log = logging.getLogger("rtspnego.state")

class State(enum.Enum):
    INIT = "init"
    OPTIONS = "options"
    DESCRIBE = "describe"
    SETUP = "setup"
    PLAY = "play"
    PAUSE = "pause"
    TEARDOWN = "teardown"
    ERROR = "error"
    EXIT = "exit"

    @property
    def is_terminal(self) -> bool:
        return self in (State.ERROR, State.EXIT)

class Command(enum.Enum):
    OPTIONS = "OPTIONS"
    DESCRIBE = "DESCRIBE"
    SETUP = "SETUP"
    PLAY = "PLAY"
    PAUSE = "PAUSE"
    TEARDOWN = "TEARDOWN"

# command to send from a state, and where its successful reply leads
COMMANDS = {
    State.INIT: Command.OPTIONS,
    State.OPTIONS: Command.DESCRIBE,
    State.DESCRIBE: Command.SETUP,
    State.SETUP: Command.PLAY,
    State.PLAY: Command.PAUSE,
    State.PAUSE: Command.TEARDOWN,
}

NEXT_STATE = {
    State.INIT: State.OPTIONS,
    State.OPTIONS: State.DESCRIBE,
    State.DESCRIBE: State.SETUP,
    State.SETUP: State.PLAY,
    State.PLAY: State.PAUSE,
    State.PAUSE: State.TEARDOWN,
    State.TEARDOWN: State.EXIT,
}

@dataclass
class Session:
    sequence_number: int = 1
    session_id: Optional[str] = None
    track_descriptor: Optional[str] = None
    state: State = State.INIT
    awaiting_reply: bool = False
    last_sequence_sent: Optional[int] = None

    def next_sequence(self) -> int:
        v = self.sequence_number
        self.sequence_number += 1
        return v

@dataclass
class Transition:
    state: State
    session_id: Optional[str] = None
    track_descriptor: Optional[str] = None
    error: Optional[RTSPError] = None

def advance(state: State, parsed: ParsedResponse) -> Transition:
    """Pure transition function: where does ``parsed`` take ``state``?"""
    if not parsed.status_is_ok:
        return Transition(State.ERROR, error=RTSPStatusError(parsed.status_line))
    if state.is_terminal:
        return Transition(state)
    if state is State.OPTIONS:
        if not parsed.track_descriptor:
            return Transition(State.ERROR, error=RTSPMissingFieldError("track_descriptor", state.value))
        return Transition(State.DESCRIBE, track_descriptor=parsed.track_descriptor)
    if state is State.DESCRIBE:
        if not parsed.session_id:
            return Transition(State.ERROR, error=RTSPMissingFieldError("session_id", state.value))
        return Transition(State.SETUP, session_id=parsed.session_id)
    return Transition(NEXT_STATE[state])

class SessionStateMachine:
    """Applies replies to a Session, one outstanding request at a time."""

    def __init__(self, session: Optional[Session] = None, strict_cseq: bool = False):
        self.session = session or Session()
        self.strict_cseq = strict_cseq
        self.last_error: Optional[RTSPError] = None

    @property
    def state(self) -> State:
        return self.session.state

    @property
    def is_terminal(self) -> bool:
        return self.session.state.is_terminal

    def _set_state(self, state: State) -> None:
        if state is not self.session.state:
            log.info("state %s -> %s", self.session.state.value, state.value)
        self.session.state = state

    def next_command(self) -> Optional[Command]:
        """Command to send now, or None while waiting or when finished."""
        if self.session.awaiting_reply or self.is_terminal:
            return None
        if self.session.state is State.TEARDOWN:
            self._set_state(State.EXIT)
            return None
        return COMMANDS[self.session.state]

    def mark_sent(self, cseq: int) -> None:
        self.session.awaiting_reply = True
        self.session.last_sequence_sent = cseq

    def feed(self, parsed: ParsedResponse) -> bool:
        """Apply a reply. Returns False if it was discarded as unsolicited."""
        if not self.session.awaiting_reply:
            log.warning("Discarding unsolicited reply in state %s: %r",
                        self.session.state.value, parsed.status_line)
            return False
        if (self.strict_cseq and parsed.cseq is not None
                and parsed.cseq != self.session.last_sequence_sent):
            log.warning("Discarding reply with CSeq %d, expected %s",
                        parsed.cseq, self.session.last_sequence_sent)
            return False
        t = advance(self.session.state, parsed)
        self.session.awaiting_reply = False
        if t.track_descriptor is not None:
            self.session.track_descriptor = t.track_descriptor
        if t.session_id is not None:
            self.session.session_id = t.session_id
        if t.error is not None:
            self.last_error = t.error
            log.error("Negotiation failed in state %s: %s", self.session.state.value, t.error)
        self._set_state(t.state)
        return True

    def fail(self, error: RTSPError) -> None:
        """Force the terminal error state (transport failures, timeouts)."""
        if self.is_terminal:
            return
        self.last_error = error
        self.session.awaiting_reply = False
        log.error("Negotiation aborted in state %s: %s", self.session.state.value, error)
        self._set_state(State.ERROR)
