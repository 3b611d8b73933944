import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from keyfleet import config
from keyfleet.core.confirm import ClickConfirmer, Confirmer
from keyfleet.core.fanout import fan_out
from keyfleet.core.keyspace import parse_prefix
from keyfleet.core.statistics import AggregateReport, StatisticsAggregator
from keyfleet.errors import ConfigurationError, OperationAborted
from keyfleet.provider.base import FleetNode, FleetProvider, NodeRequest
from keyfleet.schemas import Campaign, Job, StatusSnapshot
from keyfleet.ui.presenter import FleetPresenter
from keyfleet.worker.client import WorkerControl

logger = logging.getLogger(__name__)


class FleetController:
    """Spawns, destroys, schedules and polls the nodes of a tagged campaign."""

    def __init__(
        self,
        provider: FleetProvider,
        worker: WorkerControl,
        confirmer: Optional[Confirmer] = None,
        presenter: Optional[FleetPresenter] = None,
        aggregator: Optional[StatisticsAggregator] = None,
        tag_prefix: str = config.TAG_PREFIX,
        max_concurrency: int = config.MAX_CONCURRENCY,
    ):
        self.provider = provider
        self.worker = worker
        self.confirmer = confirmer or ClickConfirmer()
        self.presenter = presenter or FleetPresenter()
        self.aggregator = aggregator or StatisticsAggregator()
        self.tag_prefix = tag_prefix
        self.max_concurrency = max_concurrency

    def campaign_tag(self, tag: str) -> str:
        return f"{self.tag_prefix}-{tag}"

    def node_name(self, tag: str, index: int) -> str:
        return f"{self.campaign_tag(tag)}-{index}"

    def _confirm(self, action: str, names: List[str]) -> None:
        self.presenter.show_plan(action, names)
        if not self.confirmer.confirm("Are you sure?"):
            raise OperationAborted(f"Aborted: {action}")

    def _nodes(self, tag: str) -> List[FleetNode]:
        nodes = self.provider.list_nodes(self.campaign_tag(tag))
        logger.info(f"Found {len(nodes)} nodes tagged {self.campaign_tag(tag)}")
        return nodes

    # spawn

    def _resolve_keys(self, names: List[str], strict: bool) -> List[int]:
        keys = self.provider.list_ssh_keys()
        matched = [key for key in keys if key.name in names]
        missing = sorted(set(names) - {key.name for key in matched})
        if missing:
            if strict:
                raise ConfigurationError(f"SSH keys not found: {', '.join(missing)}")
            logger.warning(f"Ignoring unknown SSH keys: {', '.join(missing)}")
        return [key.id for key in matched]

    def _resolve_image(self, name: str) -> int:
        images = [image for image in self.provider.list_private_images() if image.name == name]
        if len(images) != 1:
            found = "not found" if not images else f"matched {len(images)} images"
            raise ConfigurationError(f"Image {name} {found}")
        return images[0].id

    def spawn(self, campaign: Campaign, strict_keys: bool = False) -> List[FleetNode]:
        with ThreadPoolExecutor(max_workers=2) as executor:
            keys_future = executor.submit(self._resolve_keys, campaign.keys, strict_keys)
            image_future = executor.submit(self._resolve_image, campaign.image)
            key_ids = keys_future.result()
            image_id = image_future.result()

        self._confirm(f"About to spawn {campaign.count} nodes tagged {self.campaign_tag(campaign.tag)}", [])

        node_requests = [
            NodeRequest(
                name=self.node_name(campaign.tag, index),
                region=campaign.region,
                size=campaign.size,
                image=image_id,
                ssh_keys=key_ids,
                tags=[self.campaign_tag(campaign.tag)],
            )
            for index in range(campaign.count)
        ]
        nodes = fan_out("create node", self.provider.create_node, node_requests, self.max_concurrency)
        logger.info(f"Spawned {len(nodes)} nodes for {campaign.tag}")
        self.presenter.show_spawned(nodes)
        return nodes

    # destroy

    def destroy(self, tag: str) -> List[int]:
        nodes = self._nodes(tag)
        if not nodes:
            self.presenter.show_no_nodes(self.campaign_tag(tag))
            return []

        self._confirm(f"Going to destroy {len(nodes)} nodes:", [node.name for node in nodes])

        ids = [node.id for node in nodes]
        fan_out("delete node", self.provider.delete_node, ids, self.max_concurrency)
        logger.info(f"Deleted {len(ids)} nodes tagged {self.campaign_tag(tag)}")
        self.presenter.show_destroyed(len(ids))
        return ids

    # schedule

    def schedule(self, tag: str, prefix: str, email: Optional[str] = None) -> List[Job]:
        parse_prefix(prefix)
        nodes = self._nodes(tag)
        if not nodes:
            self.presenter.show_no_nodes(self.campaign_tag(tag))
            return []

        addresses = [node.require_ipv4() for node in nodes]
        self._confirm(f'Going to schedule "{prefix}" on {len(nodes)} nodes:', [node.name for node in nodes])

        jobs = fan_out(
            "create job",
            lambda address: self.worker.create_job(address, prefix, email),
            addresses,
            self.max_concurrency,
        )
        logger.info(f"Scheduled {len(jobs)} jobs for prefix {prefix}")
        self.presenter.show_scheduled(jobs)
        return jobs

    # status

    def _snapshot(self, node: FleetNode) -> StatusSnapshot:
        address = node.primary_ipv4
        if address is None:
            logger.warning(f"Node {node.name} has no IPv4 address; counting it as unreachable")
            return StatusSnapshot.empty(reachable=False)
        return self.worker.get_jobs(address)

    def status(self, tag: str, prefix: str) -> AggregateReport:
        self.aggregator.bit_length(prefix)
        nodes = self._nodes(tag)
        snapshots = fan_out("fetch jobs", self._snapshot, nodes, self.max_concurrency)
        report = self.aggregator.aggregate(snapshots, prefix)
        self.presenter.show_report(report)
        return report
