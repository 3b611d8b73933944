"""Provider-neutral view of fleet nodes and the operations the controller needs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from keyfleet.errors import NodeNotReady


@dataclass
class SshKey:
    id: int
    name: str
    fingerprint: str = ""


@dataclass
class Image:
    id: int
    name: str


@dataclass
class Address:
    ip: str
    kind: str = "public"


@dataclass
class FleetNode:
    id: int
    name: str
    region: str = ""
    size: str = ""
    tags: List[str] = field(default_factory=list)
    ipv4: List[Address] = field(default_factory=list)

    @property
    def primary_ipv4(self) -> Optional[str]:
        """First public IPv4 address, else the first address of any kind."""
        for address in self.ipv4:
            if address.kind == "public":
                return address.ip
        return self.ipv4[0].ip if self.ipv4 else None

    def require_ipv4(self) -> str:
        ip = self.primary_ipv4
        if ip is None:
            raise NodeNotReady(f"Node {self.name} ({self.id}) has no IPv4 address yet")
        return ip


@dataclass
class NodeRequest:
    name: str
    region: str
    size: str
    image: int
    ssh_keys: List[int]
    tags: List[str]


class FleetProvider(Protocol):
    """Operations consumed from the cloud provider. Every failure raises ProviderError."""

    def list_ssh_keys(self) -> List[SshKey]: ...

    def list_private_images(self) -> List[Image]: ...

    def create_node(self, request: NodeRequest) -> FleetNode: ...

    def list_nodes(self, tag: str) -> List[FleetNode]: ...

    def delete_node(self, node_id: int) -> None: ...
