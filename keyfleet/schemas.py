"""
Data schemas for campaigns and the worker control protocol
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Any, Union
from enum import Enum


class JobStatus(str, Enum):
    """Lifecycle states reported by a worker"""
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"


class Campaign(BaseModel):
    """
    Input for spawning a fleet
    Rebuilt from CLI options on every invocation, never stored
    """
    tag: str = Field(min_length=1, description="Campaign tag used for node discovery")
    count: int = Field(ge=1, description="Number of nodes to create")
    region: str = Field(description="Provider region slug")
    size: str = Field(description="Provider size slug")
    image: str = Field(description="Exact name of the private worker image")
    keys: List[str] = Field(default_factory=list, description="SSH key names to install")

    prefix: Optional[str] = Field(None, description="Target prefix, if already known")
    email: Optional[str] = Field(None, description="Where workers report found keys")

    @field_validator("keys", mode="before")
    @classmethod
    def split_keys(cls, value):
        if isinstance(value, str):
            return [name.strip() for name in value.split(",") if name.strip()]
        return value


class JobConfig(BaseModel):
    """Configuration echoed back by the worker"""
    prefix: str
    email: Optional[str] = None


class JobStats(BaseModel):
    ticks: int = Field(default=0, ge=0, description="Keys tried so far")


class Job(BaseModel):
    """A single search task as reported by its node"""
    id: Optional[Union[int, str]] = None
    config: JobConfig
    status: JobStatus = JobStatus.QUEUED
    stats: JobStats = Field(default_factory=JobStats)
    elapsed: float = Field(default=0, description="Milliseconds since the job started")
    result: Optional[Any] = None


class StatusSnapshot(BaseModel):
    """
    One node's view of its jobs at a single instant
    Mirrors the GET /jobs payload
    """
    jobs: List[Job] = Field(default_factory=list, description="Running jobs")
    history: List[Job] = Field(default_factory=list, description="Completed jobs")
    queue: List[Job] = Field(default_factory=list, description="Queued jobs")
    reachable: bool = Field(default=True, description="False when the node could not be polled")

    @classmethod
    def empty(cls, reachable: bool = True) -> "StatusSnapshot":
        return cls(reachable=reachable)

    def all_jobs(self) -> List[Job]:
        return [*self.jobs, *self.history, *self.queue]
