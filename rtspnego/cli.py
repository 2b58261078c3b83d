"""Command-line entry point: negotiate one session and print a JSON summary."""

from __future__ import annotations

import argparse
import json
import logging
from typing import Optional, Tuple

from .client import RTSPClient
from .config import DEFAULT_USER_AGENT, ClientConfig
from .exceptions import RTSPValidationError
from .utils import parse_rtsp_url

def _client_ports(value: str) -> Tuple[int, int]:
    try:
        a, b = value.split("-", 1)
        return int(a), int(b)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected RTP-RTCP port pair, got {value!r}") from exc

def _bind_address(value: str) -> Tuple[str, int]:
    host, _, port = value.rpartition(":")
    try:
        return host, int(port)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected HOST:PORT, got {value!r}") from exc

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="rtspnego", description="Negotiate an RTSP session (OPTIONS..TEARDOWN).")
    p.add_argument("url", help="rtsp:// resource URL, used verbatim as the request target")
    p.add_argument("--host", help="server address (defaults to the URL host)")
    p.add_argument("--port", type=int, help="server port (defaults to the URL port)")
    p.add_argument("--bind", type=_bind_address, default=None, help="local HOST:PORT to bind")
    p.add_argument("--connect-timeout", type=float, default=10.0)
    p.add_argument("--poll-timeout", type=float, default=1.0)
    p.add_argument("--cycle-delay", type=float, default=1.0)
    p.add_argument("--response-timeout", type=float, default=None)
    p.add_argument("--user-agent", default=DEFAULT_USER_AGENT)
    p.add_argument("--client-ports", type=_client_ports, default="16264-16265")
    p.add_argument("--strict-cseq", action="store_true")
    p.add_argument("--debug", action="store_true")
    return p

def main(argv: Optional[list] = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        host, _, _, port, _ = parse_rtsp_url(args.url)
        config = ClientConfig(
            connect_timeout=args.connect_timeout,
            poll_timeout=args.poll_timeout,
            cycle_delay=args.cycle_delay,
            response_timeout=args.response_timeout,
            local_bind_address=args.bind,
            user_agent=args.user_agent,
            client_ports=args.client_ports,
            strict_cseq=args.strict_cseq,
            debug=args.debug,
        )
        client = RTSPClient((args.host or host, args.port or port), args.url, config)
    except RTSPValidationError as exc:
        p.error(str(exc))

    try:
        result = client.run()
    except KeyboardInterrupt:
        client.stop()
        client.close()
        result = client.result()
    print(json.dumps(result.as_dict(), indent=2))
    return 0 if result.ok else 1

if __name__ == "__main__":
    raise SystemExit(main())
