"""Benchmark -- fire() throughput with and without the result cache.

Drives the HTTP request machine around its success and failure loops and
prints the time per fire() call for each configuration.

Run: python -m examples.benchmark [iterations]
"""

import sys
import time

from examples.http_request import build_rules
from snapfsm import MachineOptions, Snapshot, StateMachine

CYCLE = [
    ("fetch", None),
    ("success", ["data1", "data2"]),
    ("fetch", None),
    ("failure", ["err"]),
    ("retry", None),
    ("failure", ["err"]),
    ("retry", None),
]


def run(options: MachineOptions, iterations: int) -> float:
    machine = StateMachine(build_rules(), options)
    machine.set_snapshot(Snapshot("init", ()))
    start = time.perf_counter()
    for _ in range(iterations):
        for event, data in CYCLE:
            machine.fire(event, data)
        machine.set_snapshot(Snapshot("init", ()))
    return time.perf_counter() - start


def main() -> None:
    iterations = int(sys.argv[1]) if len(sys.argv) > 1 else 20_000
    calls = iterations * len(CYCLE)
    print(f"=== Benchmark: {calls} fire() calls ===\n")

    configs = {
        "plain": MachineOptions(),
        "cache (event)": MachineOptions(cache_enabled=True),
        "cache (event+payload)": MachineOptions(cache_enabled=True, payload_sensitive_cache=True),
    }
    for name, options in configs.items():
        elapsed = run(options, iterations)
        print(f"  {name:<22} {elapsed:8.3f}s  {elapsed / calls * 1e6:7.2f} us/call")


if __name__ == "__main__":
    main()
