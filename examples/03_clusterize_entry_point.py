#!/usr/bin/env python3
"""
03_clusterize_entry_point.py - One-call entry point

Demonstrates: clusterize() with settings, running until the overseer
receives SIGINT. Press Ctrl+C to stop it earlier; here the overseer hook
sends SIGINT to its own process after three seconds.
"""
import asyncio
import os
import signal
import time

from clusterize import Environment, LogLevel, Settings, clusterize


def serve() -> None:
    """Worker entry: stay busy until terminated."""
    print(f"worker {os.getpid()} serving {os.environ['GREETING']}", flush=True)
    while True:
        time.sleep(0.5)


def interrupt_later() -> None:
    asyncio.get_running_loop().call_later(3, signal.raise_signal, signal.SIGINT)


if __name__ == "__main__":
    clusterize(
        serve,
        overseer_hook=interrupt_later,
        explicit_count=2,
        shared_env={"GREETING": "hello"},
        settings=Settings(
            environment=Environment.DEVELOPMENT,
            log_level=LogLevel.INFO,
            shutdown_timeout=2.0,
        ),
    )
    print("Pool stopped.")
