import random
import threading

import pytest

from endpoint_pool import Insert, MembershipRegistry, Remove, open_channel
from kube_resolver import resolve
from kube_resolver.addresses import build_address_set
from kube_resolver.config import ResolverOptions
from kube_resolver.errors import PortNotFound
from kube_resolver.reconciler import Termination
from kube_resolver.snapshot import (
    Applied,
    Bookmark,
    Deleted,
    EndpointPort,
    EndpointSnapshot,
    EndpointSubset,
)
from kube_resolver.target import Named, TargetDescriptor

TARGET = TargetDescriptor("backend", "prod")


def applied(addresses, ports=((None, 80),)) -> Applied:
    subset = EndpointSubset(
        addresses=tuple(addresses),
        ports=tuple(EndpointPort(name, port) for name, port in ports),
    )
    return Applied(EndpointSnapshot(name="backend", namespace="prod", subsets=(subset,)))


def run(events, target=TARGET, options=None, capacity=64):
    sender, receiver = open_channel(capacity)
    reconciler = resolve(target, events, sender, options=options)
    reconciler.run()
    return reconciler, list(receiver)


def summary(changes):
    return [(type(change).__name__, change.key) for change in changes]


def test_first_snapshot_inserts_everything_then_diffs():
    reconciler, changes = run(
        [
            applied(["10.0.0.1", "10.0.0.2"]),
            applied(["10.0.0.2", "10.0.0.3"]),
        ]
    )

    assert summary(changes) == [
        ("Insert", "10.0.0.1:80"),
        ("Insert", "10.0.0.2:80"),
        ("Remove", "10.0.0.1:80"),
        ("Insert", "10.0.0.3:80"),
    ]
    assert reconciler.done.result() is Termination.STREAM_ENDED
    assert reconciler.addresses() == {"10.0.0.2:80", "10.0.0.3:80"}


def test_inserts_carry_endpoint_handles():
    _, changes = run([applied(["10.0.0.1"], ports=(("grpc", 50051),))])

    (change,) = changes
    assert isinstance(change, Insert)
    assert change.endpoint.host == "10.0.0.1"
    assert change.endpoint.port == 50051
    assert change.endpoint.uri == "http://10.0.0.1:50051"


def test_repeated_snapshot_emits_nothing():
    event = applied(["10.0.0.1", "10.0.0.2"])

    _, changes = run([event, event, event])

    assert summary(changes) == [("Insert", "10.0.0.1:80"), ("Insert", "10.0.0.2:80")]


def test_deleted_removes_everything_and_resets_state():
    _, changes = run(
        [
            applied(["10.0.0.1", "10.0.0.2"]),
            Deleted(),
            applied(["10.0.0.1"]),
        ]
    )

    assert summary(changes) == [
        ("Insert", "10.0.0.1:80"),
        ("Insert", "10.0.0.2:80"),
        ("Remove", "10.0.0.1:80"),
        ("Remove", "10.0.0.2:80"),
        ("Insert", "10.0.0.1:80"),
    ]


def test_deleted_before_any_snapshot_is_a_noop():
    reconciler, changes = run([Deleted(), Deleted()])

    assert changes == []
    assert reconciler.addresses() == frozenset()


def test_bookmarks_are_ignored():
    _, changes = run([Bookmark("7"), applied(["10.0.0.1"]), Bookmark("8")])

    assert summary(changes) == [("Insert", "10.0.0.1:80")]


def test_pool_matches_last_snapshot_after_any_history():
    rng = random.Random(7)
    pool = [f"10.0.0.{i}" for i in range(1, 12)]
    events = []
    for _ in range(60):
        if rng.random() < 0.1:
            events.append(Deleted())
        else:
            events.append(applied(rng.sample(pool, rng.randint(0, len(pool)))))
    events.append(applied(["10.0.0.5", "10.0.0.9"]))

    _, changes = run(events, capacity=len(events) * len(pool) * 2)

    registry = MembershipRegistry()
    for change in changes:
        registry.handle(change)  # raises on duplicate insert or unknown remove

    expected = build_address_set(events[-1].snapshot, TARGET)
    assert set(registry.live()) == expected


def test_port_resolution_error_ends_the_loop():
    target = TargetDescriptor("backend", "prod", port=Named("grpc"))

    reconciler, changes = run(
        [
            applied(["10.0.0.1"], ports=(("grpc", 50051),)),
            applied(["10.0.0.2"], ports=(("http", 80),)),
            applied(["10.0.0.3"], ports=(("grpc", 50051),)),
        ],
        target=target,
    )

    assert summary(changes) == [("Insert", "10.0.0.1:50051")]
    assert isinstance(reconciler.done.exception(), PortNotFound)
    with pytest.raises(PortNotFound):
        reconciler.wait()


def test_malformed_subsets_can_be_skipped():
    target = TargetDescriptor("backend", "prod", port=Named("grpc"))
    snapshot = EndpointSnapshot(
        name="backend",
        subsets=(
            EndpointSubset(addresses=("10.0.0.1",), ports=(EndpointPort("grpc", 50051),)),
            EndpointSubset(addresses=("10.0.0.2",), ports=(EndpointPort("http", 80),)),
        ),
    )

    reconciler, changes = run(
        [Applied(snapshot)],
        target=target,
        options=ResolverOptions(skip_malformed_subsets=True),
    )

    assert summary(changes) == [("Insert", "10.0.0.1:50051")]
    assert reconciler.done.result() is Termination.STREAM_ENDED


def test_bad_address_is_skipped_without_stopping():
    reconciler, changes = run(
        [
            applied(["10.0.0.1", "not-an-ip"]),
            applied(["10.0.0.2"]),
        ]
    )

    assert summary(changes) == [
        ("Insert", "10.0.0.1:80"),
        ("Remove", "10.0.0.1:80"),
        ("Insert", "10.0.0.2:80"),
    ]
    assert reconciler.done.result() is Termination.STREAM_ENDED


def test_closed_pool_stops_the_loop_cleanly():
    consumed = []

    def events():
        for event in (applied(["10.0.0.1"]), applied(["10.0.0.2"])):
            consumed.append(event)
            yield event

    sender, receiver = open_channel(4)
    receiver.close()
    reconciler = resolve(TARGET, events(), sender)
    reconciler.run()

    assert reconciler.done.result() is Termination.SINK_CLOSED
    assert len(consumed) == 1


def test_stop_is_observed_before_the_next_event():
    stop_event = threading.Event()
    stop_event.set()
    sender, receiver = open_channel(4)
    reconciler = resolve(TARGET, [applied(["10.0.0.1"])], sender, stop_event=stop_event)

    reconciler.run()

    assert reconciler.done.result() is Termination.STOPPED
    assert list(receiver) == []


class StoppableEvents:
    def __init__(self, events):
        self.events = events
        self.stopped = 0

    def __iter__(self):
        return iter(self.events)

    def stop(self):
        self.stopped += 1


def test_stop_is_forwarded_to_the_watch():
    events = StoppableEvents([applied(["10.0.0.1"]), applied(["10.0.0.2"])])
    sender, receiver = open_channel(4)
    reconciler = resolve(TARGET, events, sender)

    reconciler.stop()
    reconciler.run()

    assert events.stopped == 1
    assert reconciler.done.result() is Termination.STOPPED
    assert list(receiver) == []


def test_stop_without_a_stoppable_watch():
    sender, _ = open_channel(4)
    reconciler = resolve(TARGET, iter([applied(["10.0.0.1"])]), sender)

    reconciler.stop()
    reconciler.run()

    assert reconciler.done.result() is Termination.STOPPED


def test_slow_pool_applies_backpressure():
    sender, receiver = open_channel(1)
    reconciler = resolve(
        TARGET,
        [applied(["10.0.0.1", "10.0.0.2", "10.0.0.3"]), applied(["10.0.0.3"])],
        sender,
    )
    reconciler.start()

    received = [receiver.recv(timeout=5.0)]
    assert not reconciler.done.done()
    received.extend(receiver)
    reconciler.join(timeout=5.0)

    assert summary(received) == [
        ("Insert", "10.0.0.1:80"),
        ("Insert", "10.0.0.2:80"),
        ("Insert", "10.0.0.3:80"),
        ("Remove", "10.0.0.1:80"),
        ("Remove", "10.0.0.2:80"),
    ]
    assert all(isinstance(c, Remove) for c in received[3:])
    assert reconciler.wait(timeout=5.0) is Termination.STREAM_ENDED
