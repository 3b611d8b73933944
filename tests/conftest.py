"""
Shared pytest fixtures and in-memory fakes for the provider and worker endpoints.
"""

import sys
from pathlib import Path

# Add project root to sys.path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import io
import itertools
import threading
import time
from typing import Dict, List, Optional, Set

import pytest
from rich.console import Console

from keyfleet.core.confirm import AlwaysConfirm
from keyfleet.core.controller import FleetController
from keyfleet.errors import ProviderError
from keyfleet.provider.base import Address, FleetNode, Image, NodeRequest, SshKey
from keyfleet.schemas import Job, JobConfig, JobStats, JobStatus, StatusSnapshot
from keyfleet.ui.presenter import FleetPresenter
from keyfleet.worker.errors import WorkerUnavailable


def make_job(prefix: str, status: str = "running", ticks: int = 0,
             elapsed: float = 1000, result=None, job_id=None) -> Job:
    return Job(
        id=job_id,
        config=JobConfig(prefix=prefix),
        status=JobStatus(status),
        stats=JobStats(ticks=ticks),
        elapsed=elapsed,
        result=result,
    )


class FakeProvider:
    """Thread-safe in-memory provider"""

    def __init__(self, keys=None, images=None, create_delay: float = 0.0):
        self.keys: List[SshKey] = keys or [SshKey(1, "alice"), SshKey(2, "bob")]
        self.images: List[Image] = images or [Image(10, "huffin-worker"), Image(11, "other")]
        self.nodes: Dict[int, FleetNode] = {}
        self.created: List[NodeRequest] = []
        self.deleted: List[int] = []
        self.fail_create: Set[str] = set()
        self.fail_delete: Set[int] = set()
        self.create_delay = create_delay
        self._ids = itertools.count(100)
        self._lock = threading.Lock()

    def add_node(self, name: str, tag: str, ips: Optional[List[str]] = None) -> FleetNode:
        with self._lock:
            node_id = next(self._ids)
        node = FleetNode(id=node_id, name=name, tags=[tag], ipv4=[Address(ip) for ip in (ips or [])])
        self.nodes[node.id] = node
        return node

    def list_ssh_keys(self):
        return list(self.keys)

    def list_private_images(self):
        return list(self.images)

    def create_node(self, request: NodeRequest) -> FleetNode:
        if self.create_delay:
            index = int(request.name.rsplit("-", 1)[1])
            # later indices finish first
            time.sleep(self.create_delay / (index + 1))
        if request.name in self.fail_create:
            raise ProviderError(f"quota exceeded for {request.name}", status_code=422)
        with self._lock:
            self.created.append(request)
        return self.add_node(request.name, request.tags[0], ["10.0.0.1"])

    def list_nodes(self, tag: str) -> List[FleetNode]:
        return [node for node in self.nodes.values() if tag in node.tags]

    def delete_node(self, node_id: int) -> None:
        if node_id in self.fail_delete:
            raise ProviderError(f"droplet {node_id} not found", status_code=404)
        with self._lock:
            self.deleted.append(node_id)
            self.nodes.pop(node_id, None)


class FakeWorker:
    def __init__(self):
        self.snapshots: Dict[str, StatusSnapshot] = {}
        self.unreachable: Set[str] = set()
        self.fail_create: Set[str] = set()
        self.created: List[tuple] = []
        self._lock = threading.Lock()

    def create_job(self, address: str, prefix: str, email: Optional[str] = None) -> Job:
        if address in self.fail_create:
            raise WorkerUnavailable(f"{address}: connection refused")
        with self._lock:
            self.created.append((address, prefix, email))
            job_id = len(self.created)
        return Job(id=job_id, config=JobConfig(prefix=prefix, email=email), status=JobStatus.QUEUED)

    def get_jobs(self, address: str) -> StatusSnapshot:
        if address in self.unreachable:
            return StatusSnapshot.empty(reachable=False)
        return self.snapshots.get(address, StatusSnapshot.empty())


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def presenter(output) -> FleetPresenter:
    return FleetPresenter(Console(file=output, width=120, force_terminal=False))


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def worker() -> FakeWorker:
    return FakeWorker()


@pytest.fixture
def controller(provider, worker, presenter) -> FleetController:
    return FleetController(
        provider,
        worker,
        confirmer=AlwaysConfirm(),
        presenter=presenter,
        max_concurrency=4,
    )
