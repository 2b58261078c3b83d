"""Wire bytes for each negotiation command.

Every builder consumes exactly one CSeq from the session.
"""

from __future__ import annotations

import logging
from typing import Dict, Tuple

from .config import DEFAULT_CLIENT_PORTS, DEFAULT_USER_AGENT
from .exceptions import RTSPValidationError
from .state import Command, Session
from .utils import strip_last_segment, truncate, validate_token

log = logging.getLogger("rtspnego.builder")

VERSION = "RTSP/1.0"

def _format_request(method: str, target: str, headers: Dict[str, str]) -> bytes:
    validate_token('method', method)
    for k in headers.keys():
        validate_token('header-name', k)
    req_line = f"{method} {target} {VERSION}\r\n"
    hdrs = ''.join(f"{k}: {v}\r\n" for k, v in headers.items())
    full = req_line + hdrs + '\r\n'
    log.debug('>>> REQUEST >>>\n%s', truncate(full))
    return full.encode()

def _require_session_id(session: Session, method: str) -> str:
    if not session.session_id:
        raise RTSPValidationError(f"{method} requires a session id")
    return session.session_id

def build_options(address: str, session: Session) -> bytes:
    return _format_request('OPTIONS', strip_last_segment(address),
                           {'CSeq': str(session.next_sequence())})

def build_describe(address: str, session: Session) -> bytes:
    return _format_request('DESCRIBE', address, {'CSeq': str(session.next_sequence())})

def build_setup(address: str, session: Session,
                client_ports: Tuple[int, int] = DEFAULT_CLIENT_PORTS) -> bytes:
    if not session.track_descriptor:
        raise RTSPValidationError("SETUP requires a track descriptor")
    transport = f"RTP/AVP;UNICAST;client_port={client_ports[0]}-{client_ports[1]};mode=play"
    return _format_request('SETUP', f"{address}/{session.track_descriptor}", {
        'CSeq': str(session.next_sequence()),
        'Transport': transport,
    })

def build_play(address: str, session: Session) -> bytes:
    sid = _require_session_id(session, 'PLAY')
    return _format_request('PLAY', address, {
        'Session': sid,
        'CSeq': str(session.next_sequence()),
    })

def build_pause(address: str, session: Session) -> bytes:
    sid = _require_session_id(session, 'PAUSE')
    return _format_request('PAUSE', f"{address}/", {
        'CSeq': str(session.next_sequence()),
        'Session': sid,
    })

def build_teardown(address: str, session: Session,
                   user_agent: str = DEFAULT_USER_AGENT) -> bytes:
    sid = _require_session_id(session, 'TEARDOWN')
    return _format_request('TEARDOWN', address, {
        'CSeq': str(session.next_sequence()),
        'User-Agent': user_agent,
        'Session': sid,
    })

def build_request(command: Command, address: str, session: Session,
                  client_ports: Tuple[int, int] = DEFAULT_CLIENT_PORTS,
                  user_agent: str = DEFAULT_USER_AGENT) -> bytes:
    if command is Command.SETUP:
        return build_setup(address, session, client_ports)
    if command is Command.TEARDOWN:
        return build_teardown(address, session, user_agent)
    return _BUILDERS[command](address, session)

_BUILDERS = {
    Command.OPTIONS: build_options,
    Command.DESCRIBE: build_describe,
    Command.PLAY: build_play,
    Command.PAUSE: build_pause,
}
