#!/usr/bin/env python3
"""
01_basic_pool.py - Simplest possible pool

Demonstrates: Supervisor with a ratio-sized pool, a shared environment and
respawning disabled. Every worker prints the shared text, then exits after
one second; the overseer stops the pool after three seconds.
"""
import asyncio
import os
import sys
import time

from clusterize import PoolConfig, Supervisor


def serve() -> None:
    """Worker entry: print the shared text and exit."""
    print(f"worker {os.getpid()}: {os.environ['TEXT']}", flush=True)
    time.sleep(1)


async def main(text: str) -> None:
    supervisor = Supervisor()

    def stop_later() -> None:
        asyncio.get_running_loop().call_later(3, supervisor.request_stop)

    config = PoolConfig(
        worker_entry=serve,
        overseer_hook=stop_later,
        respawn_on_exit=False,
        ratio=0.5,
        shared_env={"TEXT": text},
    )
    await supervisor.run(config)

    print("Pool stopped.")


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "hello"))
