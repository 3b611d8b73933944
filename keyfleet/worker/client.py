"""Client for the worker control endpoint running on each node."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

import requests
from pydantic import ValidationError
from requests.adapters import HTTPAdapter

from keyfleet import config
from keyfleet.schemas import Job, StatusSnapshot

from .errors import WorkerError, WorkerProtocolError, WorkerTimeout, WorkerUnavailable

logger = logging.getLogger(__name__)


class WorkerControl(Protocol):
    """What the controller needs from a node's control endpoint."""

    def create_job(self, address: str, prefix: str, email: Optional[str] = None) -> Job: ...

    def get_jobs(self, address: str) -> StatusSnapshot: ...


class PinnedNameAdapter(HTTPAdapter):
    """Validates worker certificates against a fixed name instead of the dialled address."""

    def __init__(self, servername: str, **kwargs: Any) -> None:
        self.servername = servername
        super().__init__(**kwargs)

    def init_poolmanager(self, *args: Any, **kwargs: Any) -> None:
        kwargs["server_hostname"] = self.servername
        kwargs["assert_hostname"] = self.servername
        super().init_poolmanager(*args, **kwargs)


class WorkerClient:
    def __init__(
        self,
        ca_cert: Path = config.WORKER_CERT,
        port: int = config.WORKER_PORT,
        username: str = config.WORKER_USER,
        passphrase: str = config.WORKER_PASSPHRASE,
        servername: str = config.WORKER_SERVERNAME,
        timeout: float = config.REQUEST_TIMEOUT,
    ) -> None:
        self.ca_cert = Path(ca_cert)
        self.port = port
        self.servername = servername
        self.timeout = timeout

        self.session = requests.Session()
        self.session.auth = (username, passphrase)
        self.session.verify = str(self.ca_cert)
        # environment CA bundles and proxies must not override the worker CA
        self.session.trust_env = False
        self.session.mount("https://", PinnedNameAdapter(servername))

    def _url(self, address: str, path: str) -> str:
        return f"https://{address}:{self.port}{path}"

    def _send_request(self, method: str, address: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = self.session.request(
                method, self._url(address, path), json=payload, verify=str(self.ca_cert),
                timeout=self.timeout,
            )
        except requests.Timeout as exc:
            raise WorkerTimeout(f"{address}: {exc}") from exc
        except requests.RequestException as exc:
            raise WorkerUnavailable(f"{address}: {exc}") from exc

        if not response.ok:
            raise WorkerError(f"{address}: {method} {path} returned {response.status_code} {response.reason}")
        try:
            return response.json()
        except ValueError as exc:
            raise WorkerProtocolError(f"{address}: malformed JSON: {exc}") from exc

    def create_job(self, address: str, prefix: str, email: Optional[str] = None) -> Job:
        """Queue a search job on a node. Any failure propagates."""
        payload = {"prefix": prefix}
        if email is not None:
            payload["email"] = email
        body = self._send_request("POST", address, "/job", payload)
        try:
            job = Job.model_validate(body)
        except ValidationError as exc:
            raise WorkerProtocolError(f"{address}: unexpected job descriptor: {exc}") from exc
        logger.debug("Created job %s on %s", job.id, address)
        return job

    def get_jobs(self, address: str) -> StatusSnapshot:
        """Fetch a node's jobs; an unreachable or misbehaving node yields an empty snapshot."""
        try:
            body = self._send_request("GET", address, "/jobs")
            return StatusSnapshot.model_validate(body)
        except (WorkerError, ValidationError) as exc:
            logger.warning("Could not fetch jobs from %s: %s", address, exc)
            return StatusSnapshot.empty(reachable=False)
