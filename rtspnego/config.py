"""Tunable constants for a negotiation run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .exceptions import RTSPValidationError

DEFAULT_USER_AGENT = "rtspnego/1.0"
DEFAULT_CLIENT_PORTS = (16264, 16265)
DEFAULT_BUFFER_SIZE = 8192

@dataclass
class ClientConfig:
    connect_timeout: float = 10.0
    connect_retry_delay: float = 1.0
    poll_timeout: float = 1.0
    cycle_delay: float = 1.0
    local_bind_address: Optional[Tuple[str, int]] = None
    user_agent: str = DEFAULT_USER_AGENT
    client_ports: Tuple[int, int] = DEFAULT_CLIENT_PORTS
    recv_buffer_size: int = DEFAULT_BUFFER_SIZE
    # None waits for a reply forever
    response_timeout: Optional[float] = None
    strict_cseq: bool = False
    debug: bool = False

    def __post_init__(self) -> None:
        for name in ("connect_timeout", "connect_retry_delay", "poll_timeout", "cycle_delay"):
            value = float(getattr(self, name))
            if value < 0:
                raise RTSPValidationError(f"{name} must be >= 0, got {value}")
            setattr(self, name, value)
        if self.response_timeout is not None:
            self.response_timeout = float(self.response_timeout)
            if self.response_timeout <= 0:
                raise RTSPValidationError("response_timeout must be > 0")
        p1, p2 = self.client_ports
        if p2 != p1 + 1:
            raise RTSPValidationError("client_ports must be consecutive (rtp, rtcp)")
        self.client_ports = (int(p1), int(p2))
        if self.recv_buffer_size <= 0:
            raise RTSPValidationError("recv_buffer_size must be positive")
        if not self.user_agent or "\r" in self.user_agent or "\n" in self.user_agent:
            raise RTSPValidationError(f"Invalid user_agent: {self.user_agent!r}")
