"""Lightweight RTSP reply parsing.

Fields are pulled out of the raw reply text by substring search rather than
full header tokenizing. Nothing here raises on malformed input: every field is
optional and the state machine decides which ones a transition needs.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

RTSP_OK = "RTSP/1.0 200 OK"
SESSION_PREFIX = "Session: "

_STATUS_RE = re.compile(r"RTSP/\d\.\d\s+([0-9]{3})[ \t]*([^\r\n]*)")
_CSEQ_RE = re.compile(r"^CSeq:[ \t]*(\d+)", re.IGNORECASE | re.MULTILINE)
_TRACK_RE = re.compile(r"trackID[^\s;,\"]*")
_STREAM_RE = re.compile(r"streamid[^\s;,\"]*", re.IGNORECASE)

@dataclass
class ParsedResponse:
    status_is_ok: bool
    session_id: Optional[str]
    track_descriptor: Optional[str]
    raw_text: str
    status_code: Optional[int] = None
    reason: Optional[str] = None
    cseq: Optional[int] = None

    @property
    def status_line(self) -> str:
        return self.raw_text.split("\r\n", 1)[0].split("\n", 1)[0]

def extract_session_id(text: str) -> Optional[str]:
    """Value of the ``Session:`` header up to ``;`` or end of line."""
    start = text.find(SESSION_PREFIX)
    if start < 0:
        return None
    start += len(SESSION_PREFIX)
    end = len(text)
    for delim in (";", "\r", "\n"):
        idx = text.find(delim, start)
        if 0 <= idx < end:
            end = idx
    return text[start:end].strip()

def extract_track_descriptor(text: str) -> Optional[str]:
    """First ``trackID`` token, falling back to the first ``streamid`` one."""
    m = _TRACK_RE.search(text) or _STREAM_RE.search(text)
    return m.group(0) if m else None

def parse(raw: bytes) -> Optional[ParsedResponse]:
    """Parse one reply. Returns None for empty input (nothing received yet)."""
    if not raw:
        return None
    text = raw.decode(errors="ignore")
    status_code = reason = cseq = None
    m = _STATUS_RE.match(text)
    if m:
        status_code = int(m.group(1))
        reason = m.group(2).strip()
    c = _CSEQ_RE.search(text)
    if c:
        cseq = int(c.group(1))
    return ParsedResponse(
        status_is_ok=text.startswith(RTSP_OK),
        session_id=extract_session_id(text),
        track_descriptor=extract_track_descriptor(text),
        raw_text=text,
        status_code=status_code,
        reason=reason,
        cseq=cseq,
    )
