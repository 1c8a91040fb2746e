#!/usr/bin/env python3
"""Live tracking probe for one vehicle.

Uses pyevtrack end to end to:
1) exchange a console bearer token for a tracking credential,
2) subscribe to the device's push topic and poll its latest position,
3) print every reconciled state change until Ctrl+C or ``--duration``.

Use this to check whether a vehicle's tracker reports over push, poll or both.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import os
import signal
import sys
import time
from dataclasses import dataclass
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyevtrack import (  # noqa: E402
    AuthSession,
    TrackedVehicleState,
    TrackingClient,
    TrackingConfig,
    TrackingError,
)


@dataclass
class ProbeStats:
    started_at: float
    updates: int = 0
    last_status: str | None = None


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Follow one vehicle's live position via pyevtrack.",
    )
    parser.add_argument("vehicle_id", help="Console vehicle id to track.")
    parser.add_argument(
        "--token",
        default=os.environ.get("EVTRACK_TOKEN"),
        help="Console bearer token (default: $EVTRACK_TOKEN).",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--poll-only",
        action="store_true",
        help="Disable the push channel.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _print_state(stats: ProbeStats, state: TrackedVehicleState) -> None:
    stats.updates += 1
    if state.channel_status != stats.last_status:
        print(f"[probe] status   : {state.status_text}")
        stats.last_status = state.channel_status
    position = state.current_position
    if position is None:
        return
    speed = "-" if position.speed is None else f"{position.speed:.1f}"
    print(
        f"[probe] position : {position.latitude:.6f},{position.longitude:.6f}"
        f" speed={speed} source={state.position_source}"
    )


def _print_summary(stats: ProbeStats, state: TrackedVehicleState | None) -> None:
    print("[probe] Summary")
    print(f"[probe]   runtime_s : {time.time() - stats.started_at:.1f}")
    print(f"[probe]   updates   : {stats.updates}")
    if state is not None:
        print(f"[probe]   accepted  : {state.accepted_samples}")
        print(f"[probe]   status    : {state.status_text}")


async def _run(args: argparse.Namespace, config: TrackingConfig, stats: ProbeStats) -> TrackedVehicleState:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(signum, stop.set)

    auth = AuthSession(bearer_token=args.token)
    async with TrackingClient(config, auth) as client:
        session = await client.track(args.vehicle_id, on_update=lambda state: _print_state(stats, state))
        credential = session.credential
        print(f"[probe] device   : {credential.device_handle} plate={credential.license_plate or '-'}")
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(stop.wait(), timeout=args.duration or None)
        state = session.state
    return state


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if not args.token:
        print("[probe] No console token; pass --token or set EVTRACK_TOKEN", file=sys.stderr)
        return 2

    overrides = {"mqtt_enabled": False} if args.poll_only else {}
    config = TrackingConfig.from_env(**overrides)
    stats = ProbeStats(started_at=time.time())
    try:
        state = asyncio.run(_run(args, config, stats))
    except TrackingError as exc:  # pragma: no cover - network/system interaction
        print(f"[probe] Tracking failed: {exc}", file=sys.stderr)
        return 2

    _print_summary(stats, state)
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
