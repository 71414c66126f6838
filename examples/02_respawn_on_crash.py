#!/usr/bin/env python3
"""
02_respawn_on_crash.py - Custom respawn decisions

Demonstrates:
- Reporting a listening address from a worker with notify_listening()
- Subscribing to spawner events for observability
- A respawn decision that replaces crashed workers a limited number of times

Workers crash shortly after they start listening. The first three crashes
are replaced; after that the pool winds down on its own.
"""

import asyncio
import os
import sys
import time

from clusterize import (
    ExitInfo,
    MultiprocessSpawner,
    PoolConfig,
    Supervisor,
    current_worker_id,
    notify_listening,
    respawn_on_crash,
)
from clusterize.events import WorkerListeningEvent

MAX_RESPAWNS = 3


def serve() -> None:
    """Pretend to bind a port, then crash."""
    port = int(os.environ["BASE_PORT"]) + (current_worker_id() or 0)
    notify_listening(("127.0.0.1", port))
    time.sleep(0.5)
    sys.exit(1)


def on_listening(event: WorkerListeningEvent) -> None:
    print(f"  worker {event.worker_id} (pid {event.pid}) on {event.address}")


async def main() -> None:
    spawner = MultiprocessSpawner(start_method="spawn")
    spawner.emitter.on("worker.listening", on_listening)
    supervisor = Supervisor(spawner=spawner)
    respawned = 0

    def limited_respawn(info: ExitInfo) -> bool:
        nonlocal respawned
        print(f"  worker {info.worker_id} exited (code={info.exit_code})")
        if not respawn_on_crash(info) or respawned >= MAX_RESPAWNS:
            if not supervisor.handles:
                supervisor.request_stop()
            return False
        respawned += 1
        return True

    config = PoolConfig(
        worker_entry=serve,
        explicit_count=2,
        respawn_decision=limited_respawn,
        shared_env={"BASE_PORT": "8000"},
    )
    await supervisor.run(config)

    print(f"Pool stopped after {respawned} respawns.")


if __name__ == "__main__":
    asyncio.run(main())
