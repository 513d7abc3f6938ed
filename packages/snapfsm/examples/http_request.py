"""HTTP request lifecycle -- a four-state machine driven by fetch results.

Demonstrates:
- Building a rule table with RulesBuilder (default actions and a guard)
- Dev-mode warnings and transition logging through the standard logger
- Subscribing to a state
- can_fire() reporting reachability without consulting guards

Run: python -m examples.http_request
"""

from snapfsm import MachineOptions, RulesBuilder, Snapshot, StateMachine, configure_logging


def response_is_fresh(state: str, event: str) -> bool:
    # Stand-in for a real check such as comparing ETags.
    return True


def build_rules():
    return (
        RulesBuilder()
        .add_transitions("init", {"fetch": {"to": "loading"}})
        .add_transitions("loading", {
            "success": {"to": "loaded", "guard": response_is_fresh},
            "failure": {"to": "error"},
        })
        .add_transitions("loaded", {"fetch": {"to": "loading"}})
        .add_transitions("error", {"retry": {"to": "loading"}})
        .build()
    )


def main() -> None:
    configure_logging("INFO")
    print("=== HTTP request ===\n")

    machine = StateMachine(
        build_rules(),
        MachineOptions(dev_mode=True, log_transitions=True, subscription_mode=True),
    )
    machine.subscribe("loaded", lambda snap: print(f"  [subscriber] loaded {list(snap.applied_data)}"))

    machine.set_snapshot(Snapshot("init", ()))
    machine.fire("fetch")
    machine.fire("success", ["data1", "data2"])

    # No rule for (loaded, failure): prints False, dev mode logs a warning.
    print(f"  can_fire('failure') -> {machine.can_fire('failure')}")
    print(f"  snapshot: {machine.snapshot}\n")

    # Failure path with a retry.
    machine.fire("fetch")
    machine.fire("failure", ["err"])
    machine.fire("retry")
    machine.fire("retry")  # unhandled from 'loading'
    print(f"  snapshot: {machine.snapshot}")


if __name__ == "__main__":
    main()
