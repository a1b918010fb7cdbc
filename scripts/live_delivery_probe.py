"""Watch the Newsflash live endpoint and report which events arrive.

Open one websocket per access token, optionally join newsflash rooms, and
count the events each connection receives until the session ends. Useful to
check fan-out against a running server while posting from another client.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import signal
import sys
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable
from urllib.parse import urlencode

import websockets

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProbeResult:
    """What a single connection observed."""

    index: int
    connected: bool = False
    account_id: int | None = None
    online_friends: list[int] = field(default_factory=list)
    connect_latency: float | None = None
    events: Counter = field(default_factory=Counter)
    first_seen: dict[str, float] = field(default_factory=dict)
    duration: float = 0.0
    error: str | None = None


def _probe_url(base_url: str, token: str) -> str:
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{urlencode({'token': token})}"


async def _probe(
    index: int,
    url: str,
    token: str,
    *,
    session_duration: float,
    newsflash_ids: Iterable[int],
    open_timeout: float,
) -> ProbeResult:
    """Hold one live connection open and record every frame it receives."""

    start_time = time.perf_counter()
    result = ProbeResult(index=index)
    try:
        async with websockets.connect(
            _probe_url(url, token), open_timeout=open_timeout
        ) as websocket:
            connected_at = time.perf_counter()
            result.connected = True
            result.connect_latency = connected_at - start_time

            for newsflash_id in newsflash_ids:
                await websocket.send(
                    json.dumps({"type": "newsflash:join", "newsflash_id": newsflash_id})
                )

            deadline = connected_at + session_duration
            while True:
                remaining = deadline - time.perf_counter()
                if remaining <= 0:
                    break
                try:
                    raw = await asyncio.wait_for(websocket.recv(), timeout=remaining)
                except asyncio.TimeoutError:
                    break
                try:
                    frame = json.loads(raw)
                except (TypeError, json.JSONDecodeError):
                    logger.warning("probe %s received a non-JSON frame", index)
                    continue

                event = frame.get("type", "unknown")
                result.events[event] += 1
                result.first_seen.setdefault(event, time.perf_counter() - connected_at)
                if event == "ping":
                    await websocket.send(json.dumps({"type": "pong"}))
                elif event == "session":
                    data = frame.get("data") or {}
                    result.account_id = data.get("accountId")
                    result.online_friends = list(data.get("onlineFriends") or [])
                logger.debug("probe %s <- %s", index, frame)
    except asyncio.CancelledError:
        raise
    except Exception as exc:  # pragma: no cover - network failures are non-deterministic
        result.error = f"{type(exc).__name__}: {exc}"
        logger.warning("probe %s failed: %s", index, result.error)
    finally:
        result.duration = time.perf_counter() - start_time
    return result


def _summarize(results: Iterable[ProbeResult]) -> dict[str, Any]:
    results = list(results)
    totals: Counter = Counter()
    for item in results:
        totals.update(item.events)
    return {
        "attempted": len(results),
        "connected": sum(1 for item in results if item.connected and item.error is None),
        "failed": sum(1 for item in results if item.error is not None),
        "events": dict(totals),
        "connections": [
            {
                "index": item.index,
                "account_id": item.account_id,
                "online_friends": item.online_friends,
                "connect_latency": item.connect_latency,
                "events": dict(item.events),
                "first_seen": item.first_seen,
                "error": item.error,
            }
            for item in results
        ],
    }


async def run_probe(args: argparse.Namespace) -> dict[str, Any]:
    """Entry point used by the CLI wrapper."""

    logger.info(
        "starting live probe: url=%s connections=%s duration=%ss",
        args.url,
        len(args.token),
        args.session_duration,
    )
    tasks = [
        asyncio.create_task(
            _probe(
                index,
                args.url,
                token,
                session_duration=args.session_duration,
                newsflash_ids=args.join,
                open_timeout=args.open_timeout,
            ),
            name=f"live-probe-{index}",
        )
        for index, token in enumerate(args.token)
    ]

    def _cancel(signum: int, _frame: Any) -> None:  # pragma: no cover - signal handling
        logger.warning("received signal %s, cancelling probe", signum)
        for task in tasks:
            task.cancel()

    handlers: dict[int, Any] = {}
    for signum in (signal.SIGINT, signal.SIGTERM):  # pragma: no cover - platform specific
        with contextlib.suppress(ValueError):
            handlers[signum] = signal.getsignal(signum)
            signal.signal(signum, _cancel)

    try:
        results = await asyncio.gather(*tasks)
    finally:
        for signum, previous in handlers.items():  # pragma: no cover - best effort cleanup
            with contextlib.suppress(ValueError):
                signal.signal(signum, previous)

    summary = _summarize(results)
    logger.info("probe finished: %s connected, %s failed", summary["connected"], summary["failed"])
    return summary


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("url", help="Websocket URL, e.g. ws://localhost:8000/ws")
    parser.add_argument(
        "--token",
        action="append",
        required=True,
        help="Access token of an account to connect as; repeat for several accounts",
    )
    parser.add_argument(
        "--join",
        type=int,
        action="append",
        default=[],
        help="Newsflash id whose room every connection joins; may be repeated",
    )
    parser.add_argument(
        "--session-duration",
        type=float,
        default=30.0,
        help="How long each connection should stay open (seconds)",
    )
    parser.add_argument(
        "--open-timeout",
        type=float,
        default=10.0,
        help="Timeout for establishing the websocket connection",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit the summary as JSON for machine processing",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log verbosity level",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv or sys.argv[1:])
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    try:
        summary = asyncio.run(run_probe(args))
    except KeyboardInterrupt:  # pragma: no cover - manual interruption
        logger.warning("interrupted by user")
        return 130

    if args.json:
        print(json.dumps(summary, indent=2, sort_keys=True))
    else:
        print("\n=== Live Probe Summary ===")
        for key, value in summary.items():
            if key == "connections":
                continue
            print(f"{key}: {value}")
        for connection in summary["connections"]:
            print(f"  #{connection['index']} account={connection['account_id']} events={connection['events']}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
