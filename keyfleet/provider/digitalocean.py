"""
DigitalOcean implementation of the fleet provider
"""
import logging
import requests
from typing import Any, Dict, List, Optional

from keyfleet import config
from keyfleet.errors import ProviderError
from keyfleet.provider.base import Address, FleetNode, Image, NodeRequest, SshKey


logger = logging.getLogger(__name__)


class DigitalOceanProvider:
    """
    Thin REST v2 client covering keys, private images and droplets
    """

    def __init__(self, token: str, api_base: str = config.API_BASE,
                 timeout: float = config.REQUEST_TIMEOUT,
                 page_size: int = config.NODE_PAGE_SIZE):
        self.api_base = api_base.rstrip('/')
        self.timeout = timeout
        self.page_size = page_size

        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {token}',
            'Content-Type': 'application/json',
            'User-Agent': 'keyfleet/0.1',
        })

    def _request(self, method: str, path: str, **kwargs) -> Optional[Dict[str, Any]]:
        url = f"{self.api_base}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise ProviderError(f"{method} {path} failed: {exc}") from exc

        if not response.ok:
            raise ProviderError(
                f"{method} {path} returned {response.status_code}: {self._error_message(response)}",
                status_code=response.status_code,
            )

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ProviderError(f"{method} {path} returned malformed JSON: {exc}") from exc

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.reason or 'unknown error'
        if isinstance(body, dict) and body.get('message'):
            return str(body['message'])
        return response.reason or 'unknown error'

    def _warn_if_truncated(self, body: Dict[str, Any], what: str) -> None:
        pages = (body.get('links') or {}).get('pages') or {}
        if pages.get('next'):
            logger.warning(f"More {what} exist than fit in one page of {self.page_size}; extra entries are ignored")

    def list_ssh_keys(self) -> List[SshKey]:
        body = self._request('GET', '/account/keys', params={'per_page': self.page_size}) or {}
        self._warn_if_truncated(body, 'SSH keys')
        return [
            SshKey(id=key['id'], name=key['name'], fingerprint=key.get('fingerprint', ''))
            for key in body.get('ssh_keys', [])
        ]

    def list_private_images(self) -> List[Image]:
        body = self._request('GET', '/images', params={'private': 'true', 'per_page': self.page_size}) or {}
        self._warn_if_truncated(body, 'images')
        return [Image(id=image['id'], name=image['name']) for image in body.get('images', [])]

    def create_node(self, request: NodeRequest) -> FleetNode:
        payload = {
            'name': request.name,
            'region': request.region,
            'size': request.size,
            'image': request.image,
            'ssh_keys': request.ssh_keys,
            'tags': request.tags,
        }
        body = self._request('POST', '/droplets', json=payload) or {}
        if 'droplet' not in body:
            raise ProviderError(f"Droplet creation for {request.name} returned no droplet")
        return droplet_to_node(body['droplet'])

    def list_nodes(self, tag: str) -> List[FleetNode]:
        body = self._request('GET', '/droplets', params={'tag_name': tag, 'per_page': self.page_size}) or {}
        self._warn_if_truncated(body, f'droplets tagged {tag}')
        return [droplet_to_node(droplet) for droplet in body.get('droplets', [])]

    def delete_node(self, node_id: int) -> None:
        self._request('DELETE', f'/droplets/{node_id}')
        logger.debug(f"Deleted droplet {node_id}")


def droplet_to_node(droplet: Dict[str, Any]) -> FleetNode:
    """Convert a droplet payload into a FleetNode"""
    networks = droplet.get('networks') or {}
    addresses = [
        Address(ip=entry['ip_address'], kind=entry.get('type', 'public'))
        for entry in networks.get('v4', [])
        if entry.get('ip_address')
    ]
    region = droplet.get('region') or {}
    return FleetNode(
        id=droplet['id'],
        name=droplet.get('name', ''),
        region=region.get('slug', '') if isinstance(region, dict) else str(region),
        size=droplet.get('size_slug', ''),
        tags=list(droplet.get('tags', [])),
        ipv4=addresses,
    )
