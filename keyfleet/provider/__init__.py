"""Cloud provider adapters for keyfleet."""

from .base import Address, FleetNode, FleetProvider, Image, NodeRequest, SshKey
from .digitalocean import DigitalOceanProvider

__all__ = [
    "Address",
    "FleetNode",
    "FleetProvider",
    "Image",
    "NodeRequest",
    "SshKey",
    "DigitalOceanProvider",
]
