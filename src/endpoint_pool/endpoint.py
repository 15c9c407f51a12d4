"""Endpoint handles built from ``ip:port`` strings."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Tuple

from .errors import AddressConstructionError


def _split_host_port(address: str) -> Tuple[str, str]:
    if address.startswith("["):
        host, sep, rest = address[1:].partition("]")
        if not sep or not rest.startswith(":"):
            raise AddressConstructionError(address, "malformed bracketed host")
        return host, rest[1:]

    host, sep, port = address.rpartition(":")
    if not sep:
        raise AddressConstructionError(address, "missing port")
    return host, port


@dataclass(frozen=True)
class Endpoint:
    """A dialable endpoint in the pool."""

    host: str
    port: int

    @classmethod
    def from_address(cls, address: str) -> "Endpoint":
        host, port_text = _split_host_port(address)
        try:
            ip = ipaddress.ip_address(host)
        except ValueError as exc:
            raise AddressConstructionError(address, str(exc)) from exc

        if not (port_text.isascii() and port_text.isdigit()):
            raise AddressConstructionError(address, f"invalid port '{port_text}'")
        port = int(port_text)
        if not 0 < port < 65536:
            raise AddressConstructionError(address, f"port {port} out of range")

        return cls(host=str(ip), port=port)

    @property
    def is_ipv6(self) -> bool:
        return ipaddress.ip_address(self.host).version == 6

    @property
    def authority(self) -> str:
        if self.is_ipv6:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"

    @property
    def uri(self) -> str:
        return f"http://{self.authority}"
