import logging

import pytest

from kube_resolver.addresses import build_address_set, diff_address_sets
from kube_resolver.errors import PortNotFound
from kube_resolver.snapshot import EndpointPort, EndpointSnapshot, EndpointSubset
from kube_resolver.target import Named, TargetDescriptor, Unspecified


def make_snapshot(*subsets: EndpointSubset) -> EndpointSnapshot:
    return EndpointSnapshot(name="backend", namespace="prod", subsets=subsets)


def test_empty_snapshot_yields_empty_set():
    assert build_address_set(make_snapshot(), TargetDescriptor("backend")) == frozenset()


def test_each_subset_resolves_its_own_port():
    snapshot = make_snapshot(
        EndpointSubset(
            addresses=("10.0.0.1", "10.0.0.2"),
            ports=(EndpointPort("grpc", 50051),),
        ),
        EndpointSubset(
            addresses=("10.0.1.1",),
            ports=(EndpointPort("http", 8080), EndpointPort("grpc", 9090)),
        ),
    )

    result = build_address_set(snapshot, TargetDescriptor("backend", port=Named("grpc")))

    assert result == {"10.0.0.1:50051", "10.0.0.2:50051", "10.0.1.1:9090"}


def test_duplicate_addresses_are_collapsed():
    subset = EndpointSubset(addresses=("10.0.0.1",), ports=(EndpointPort(None, 80),))

    result = build_address_set(make_snapshot(subset, subset), TargetDescriptor("backend"))

    assert result == {"10.0.0.1:80"}


def test_not_ready_addresses_are_ignored():
    subset = EndpointSubset(
        addresses=("10.0.0.1",),
        ports=(EndpointPort(None, 80),),
        not_ready_addresses=("10.0.0.9",),
    )

    assert build_address_set(make_snapshot(subset), TargetDescriptor("backend")) == {"10.0.0.1:80"}


def test_port_failure_aborts_whole_build():
    snapshot = make_snapshot(
        EndpointSubset(addresses=("10.0.0.1",), ports=(EndpointPort("grpc", 50051),)),
        EndpointSubset(addresses=("10.0.0.2",), ports=(EndpointPort("http", 80),)),
    )

    with pytest.raises(PortNotFound):
        build_address_set(snapshot, TargetDescriptor("backend", port=Named("grpc")))


def test_skip_malformed_subsets(caplog):
    snapshot = make_snapshot(
        EndpointSubset(addresses=("10.0.0.1",), ports=(EndpointPort("grpc", 50051),)),
        EndpointSubset(addresses=("10.0.0.2",), ports=()),
    )

    with caplog.at_level(logging.WARNING):
        result = build_address_set(
            snapshot,
            TargetDescriptor("backend", port=Unspecified()),
            skip_malformed_subsets=True,
        )

    assert result == {"10.0.0.1:50051"}
    assert "skipping subset 1" in caplog.text


def test_diff_is_sorted_and_disjoint():
    removed, added = diff_address_sets(
        {"10.0.0.1:80", "10.0.0.2:80"}, {"10.0.0.2:80", "10.0.0.4:80", "10.0.0.3:80"}
    )

    assert removed == ["10.0.0.1:80"]
    assert added == ["10.0.0.3:80", "10.0.0.4:80"]


def test_diff_of_identical_sets_is_empty():
    current = {"10.0.0.1:80", "10.0.0.2:80"}

    assert diff_address_sets(current, set(current)) == ([], [])
