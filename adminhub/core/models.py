from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

UNKNOWN_UPTIME: str = "Unknown"


@dataclass(frozen=True, slots=True)
class MemoryUsage:
    percent: float = 0.0
    total: str = ""
    used: str = ""


@dataclass(frozen=True, slots=True)
class DiskUsage:
    percent: float = 0.0
    total: str = ""
    used: str = ""


@dataclass(frozen=True, slots=True)
class RunningServiceEntry:
    name: str
    status: str
    description: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "status": self.status, "description": self.description}


def clamp_percent(value: float) -> float:
    return max(0.0, min(100.0, value))


@dataclass(frozen=True, slots=True)
class ResourceSnapshot:
    """Host resource figures parsed from one health-summary fetch.

    Percentages are kept as parsed; clamping to 0..100 happens only when a
    snapshot is rendered for clients via :meth:`to_summary`.
    """

    cpu_usage: float = 0.0
    memory_usage: float = 0.0
    total_memory: str = ""
    used_memory: str = ""
    disk_usage: float = 0.0
    total_disk: str = ""
    used_disk: str = ""
    uptime: str = UNKNOWN_UPTIME
    load_average: float = 0.0

    def to_summary(self) -> dict[str, Any]:
        return {
            "cpuUsage": clamp_percent(self.cpu_usage),
            "memoryUsage": clamp_percent(self.memory_usage),
            "diskUsage": clamp_percent(self.disk_usage),
            "loadAverage": max(0.0, self.load_average),
            "totalMemory": self.total_memory,
            "usedMemory": self.used_memory,
            "uptime": self.uptime,
            "usedDisk": self.used_disk,
            "totalDisk": self.total_disk,
        }


@dataclass(frozen=True, slots=True)
class ApplicationRecord:
    name: str
    application_url: str | None = None
    git_url: str | None = None
    branch: str | None = None
    build_type: str | None = None
    artifact_path: str | None = None
    service_name: str | None = None
    deploy_path: str | None = None
    symlink: str | None = None

    @classmethod
    def from_config(cls, name: str, config: Mapping[str, Any]) -> "ApplicationRecord":
        def _opt(key: str) -> str | None:
            value = config.get(key)
            return None if value is None else str(value)

        return cls(
            name=name,
            application_url=_opt("application_url"),
            git_url=_opt("git_url"),
            branch=_opt("branch"),
            build_type=_opt("build_type"),
            artifact_path=_opt("artifact_path"),
            service_name=_opt("service_name"),
            deploy_path=_opt("deploy_path"),
            symlink=_opt("symlink"),
        )

    @property
    def has_liveness_url(self) -> bool:
        return bool(self.application_url and self.application_url.strip())


def _frozen_map(values: Mapping[str, bool] | None = None) -> Mapping[str, bool]:
    return MappingProxyType(dict(values or {}))


@dataclass(frozen=True, slots=True)
class DeploymentStatus:
    healthy: bool = False
    liveness: Mapping[str, bool] = field(default_factory=_frozen_map)

    @property
    def message(self) -> str:
        return "Deployer service is healthy" if self.healthy else "Deployer service is unavailable"


@dataclass(frozen=True, slots=True)
class ServerHealth:
    snapshot: ResourceSnapshot = field(default_factory=ResourceSnapshot)
    services: tuple[RunningServiceEntry, ...] = ()


def liveness_map(values: Mapping[str, bool]) -> Mapping[str, bool]:
    return _frozen_map(values)
