"""rtspnego - RTSP session negotiation client

Public API:
  - RTSPClient: drives OPTIONS..TEARDOWN over one non-blocking connection
  - ClientConfig / ClientResult: run parameters and outcome
  - SessionStateMachine, Session, State: the negotiation engine
  - parse: reply parser
"""

from .client import RTSPClient, ClientResult
from .config import ClientConfig
from .parser import ParsedResponse, parse
from .state import Command, Session, SessionStateMachine, State, advance
from .transport import EventKind, TCPTransport, TransportEvent
from .utils import parse_rtsp_url
from .exceptions import *

__all__ = [
    "RTSPClient", "ClientResult", "ClientConfig",
    "ParsedResponse", "parse",
    "Command", "Session", "SessionStateMachine", "State", "advance",
    "EventKind", "TCPTransport", "TransportEvent",
    "parse_rtsp_url",
    # exceptions
    "RTSPError", "RTSPValidationError", "RTSPTransportError", "RTSPProtocolError",
    "RTSPStatusError", "RTSPMissingFieldError",
]
