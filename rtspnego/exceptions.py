"""RTSP-specific exception hierarchy."""

class RTSPError(Exception):
    """Base RTSP exception."""
    pass

class RTSPValidationError(RTSPError):
    """Raised when input validation fails."""
    pass

class RTSPProtocolError(RTSPError):
    """Raised when a server reply cannot advance the session."""
    pass

class RTSPStatusError(RTSPProtocolError):
    """The server answered with something other than ``RTSP/1.0 200 OK``."""

    def __init__(self, status_line: str):
        super().__init__(f"Server error: {status_line!r}")
        self.status_line = status_line

class RTSPMissingFieldError(RTSPProtocolError):
    """A reply lacked a field the current transition requires."""

    def __init__(self, field: str, state: str):
        super().__init__(f"Missing {field} in reply received in state {state!r}")
        self.field = field
        self.state = state

class RTSPTransportError(RTSPError):
    """Transport-level errors (socket/connect/send/receive)."""
    pass
