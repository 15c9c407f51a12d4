"""Entry point for the standalone endpoint resolver agent."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import time
from pathlib import Path
from threading import Event, Thread
from typing import List, Optional

from endpoint_pool import LoggingListener, MembershipRegistry
from kube_resolver import LocatorError, balance_channel

from .config import load_config
from .kube import build_core_api, default_namespace

LOG = logging.getLogger(__name__)

SHUTDOWN_GRACE = 5.0


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def _drain(registry: MembershipRegistry, receiver, target: str) -> None:
    try:
        registry.drain(receiver)
    except Exception:  # pragma: no cover - logged for the operator
        LOG.exception("membership for %s became inconsistent", target)
        receiver.close()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run the endpoint resolver agent")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("/etc/kube-resolver/agent.yaml"),
        help="Path to the agent configuration file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    config = load_config(args.config)
    if not config.targets:
        LOG.warning("no targets configured; agent will idle")

    api = build_core_api(config.kubernetes)
    namespace = default_namespace(config.kubernetes)

    stop_event = Event()
    resolvers = []
    drains = []
    for locator in config.targets:
        try:
            receiver, reconciler = balance_channel(
                locator,
                api,
                default_namespace=namespace,
                options=config.resolver,
            )
        except LocatorError as exc:
            LOG.error("invalid target '%s': %s", locator, exc)
            for running in resolvers:
                running.stop()
            return 1

        registry = MembershipRegistry()
        registry.register("log", LoggingListener(str(reconciler.target)))
        drain = Thread(
            target=_drain,
            args=(registry, receiver, locator),
            name=f"pool-{reconciler.target}",
            daemon=True,
        )
        drain.start()
        resolvers.append(reconciler)
        drains.append(drain)

    def _shutdown(signum, frame):  # pragma: no cover - signal handler
        LOG.info("received signal %s, shutting down", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    try:
        while not stop_event.is_set():
            if resolvers and all(r.done.done() for r in resolvers):
                LOG.warning("all resolvers have stopped")
                break
            stop_event.wait(1.0)
    except KeyboardInterrupt:  # pragma: no cover - fallback if signal not set
        stop_event.set()

    for reconciler in resolvers:
        reconciler.stop()
    # quiet watches only notice stop at their next event, bookmark or timeout
    deadline = time.monotonic() + SHUTDOWN_GRACE
    for drain in drains:
        drain.join(timeout=max(deadline - time.monotonic(), 0.0))
    pending = [r.target for r in resolvers if r.is_alive()]
    if pending:
        LOG.info("abandoning %d resolvers still waiting on their watch", len(pending))

    LOG.info("resolver agent stopped")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
