from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from adminhub.core.models import ApplicationRecord, ResourceSnapshot, RunningServiceEntry


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RunningServiceData(CamelModel):
    name: str
    status: str
    description: str = ""

    @classmethod
    def from_entry(cls, entry: RunningServiceEntry) -> "RunningServiceData":
        return cls(name=entry.name, status=entry.status, description=entry.description)


class ServerHealthSummaryData(CamelModel):
    """Resource summary as shown to clients; percentages clamped to 0..100."""

    cpu_usage: float = 0.0
    memory_usage: float = 0.0
    disk_usage: float = 0.0
    load_average: float = 0.0
    total_memory: str = ""
    used_memory: str = ""
    uptime: str = "Unknown"
    used_disk: str = ""
    total_disk: str = ""

    @classmethod
    def from_snapshot(cls, snapshot: ResourceSnapshot) -> "ServerHealthSummaryData":
        return cls.model_validate(snapshot.to_summary())


class HubHealthData(BaseModel):
    status: str
    subscribers: int


class HubHealthResponse(BaseModel):
    ok: bool
    data: HubHealthData | None = None
    meta: dict[str, Any] = Field(default_factory=dict)


class DeployerHealthData(CamelModel):
    healthy: bool
    message: str


class DeployerHealthResponse(BaseModel):
    ok: bool
    data: DeployerHealthData | None = None
    meta: dict[str, Any] = Field(default_factory=dict)


class ApplicationData(CamelModel):
    name: str
    git_url: str | None = None
    branch: str | None = None
    build_type: str | None = None
    artifact_path: str | None = None
    service_name: str | None = None
    deploy_path: str | None = None
    application_url: str | None = None
    symlink: str | None = None

    @classmethod
    def from_record(cls, record: ApplicationRecord) -> "ApplicationData":
        return cls(
            name=record.name,
            git_url=record.git_url,
            branch=record.branch,
            build_type=record.build_type,
            artifact_path=record.artifact_path,
            service_name=record.service_name,
            deploy_path=record.deploy_path,
            application_url=record.application_url,
            symlink=record.symlink,
        )


class ApplicationsResponse(BaseModel):
    ok: bool
    data: list[ApplicationData] = Field(default_factory=list)
    meta: dict[str, Any] = Field(default_factory=dict)


class AppLiveData(CamelModel):
    application_name: str
    live: bool
    message: str


class AppLiveResponse(BaseModel):
    ok: bool
    data: AppLiveData | None = None
    meta: dict[str, Any] = Field(default_factory=dict)


class RunningServicesResponse(BaseModel):
    ok: bool
    data: list[RunningServiceData] = Field(default_factory=list)
    meta: dict[str, Any] = Field(default_factory=dict)


class ServerHealthSummaryResponse(BaseModel):
    ok: bool
    data: ServerHealthSummaryData | None = None
    meta: dict[str, Any] = Field(default_factory=dict)
