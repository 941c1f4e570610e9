"""The Instana agent custom resource, its status and its defaults."""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from instana_operator.api_types import (
    ROLLING_UPDATE_STRATEGY,
    BaseAgentSpec,
    Create,
    K8sSpec,
    KubernetesSpec,
    Name,
    OpenTelemetry,
    PodSecurityPolicySpec,
    Prometheus,
    PullPolicy,
    RollingUpdateDaemonSet,
    ServiceAccountSpec,
    ServiceMeshSpec,
    Zone,
)

DEFAULT_ENDPOINT_HOST = "ingress-red-saas.instana.io"
DEFAULT_ENDPOINT_PORT = "443"
DEFAULT_AGENT_IMAGE = "icr.io/instana/agent"
DEFAULT_K8S_SENSOR_IMAGE = "icr.io/instana/k8sensor"
DEFAULT_IMAGE_TAG = "latest"
DEFAULT_MAX_UNAVAILABLE = 1
DEFAULT_K8S_SENSOR_REPLICAS = 3

_SEMVER_PATTERN = re.compile(
    r"^v?(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)


@dataclass(frozen=True)
class GroupVersion:
    """An API group together with its version."""

    group: str
    version: str

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version

    def __str__(self) -> str:
        return self.api_version


GROUP_VERSION = GroupVersion(group="instana.io", version="v1")


@dataclass
class InstanaAgentSpec:
    """Desired state of the Instana agent."""

    agent: BaseAgentSpec = field(default_factory=BaseAgentSpec)
    cluster: Name = field(default_factory=Name)
    zone: Name = field(default_factory=Name)
    openshift: bool | None = None
    rbac: Create = field(default_factory=Create)
    service: Create = field(default_factory=Create)
    open_telemetry: OpenTelemetry = field(default_factory=OpenTelemetry)
    prometheus: Prometheus = field(default_factory=Prometheus)
    service_account: ServiceAccountSpec = field(default_factory=ServiceAccountSpec)
    pod_security_policy: PodSecurityPolicySpec = field(default_factory=PodSecurityPolicySpec)
    kubernetes: KubernetesSpec = field(default_factory=KubernetesSpec)
    k8s_sensor: K8sSpec = field(default_factory=K8sSpec)
    pinned_chart_version: str = ""
    zones: list[Zone] = field(default_factory=list)
    service_mesh: ServiceMeshSpec = field(default_factory=ServiceMeshSpec)


@dataclass
class ResourceInfo:
    """Name and UID of a Kubernetes object."""

    name: str = ""
    uid: str = ""


class AgentOperatorState(str, Enum):
    RUNNING = "Running"
    UPDATING = "Updating"
    FAILED = "Failed"


@dataclass
class DeprecatedInstanaAgentStatus:
    """Legacy status fields kept for backwards compatibility."""

    status: AgentOperatorState | None = None
    reason: str = ""
    last_update: datetime | None = None
    old_versions_updated: bool = False
    config_map: ResourceInfo = field(default_factory=ResourceInfo)
    daemon_set: ResourceInfo = field(default_factory=ResourceInfo)
    leading_agent_pod: dict[str, ResourceInfo] = field(default_factory=dict)


@dataclass
class InstanaAgentStatus(DeprecatedInstanaAgentStatus):
    """Observed state of the Instana agent."""

    config_secret: ResourceInfo = field(default_factory=ResourceInfo)
    conditions: list[dict] = field(default_factory=list)
    observed_generation: int | None = None
    operator_version: str | None = None

    def __post_init__(self) -> None:
        if self.observed_generation is not None and self.observed_generation < 0:
            raise ValueError("observed generation must not be negative")
        if self.operator_version is not None and not _SEMVER_PATTERN.match(self.operator_version):
            raise ValueError(f"invalid semantic version: {self.operator_version!r}")


@dataclass
class ObjectMeta:
    """Metadata common to all Kubernetes objects."""

    name: str = ""
    namespace: str = ""
    uid: str = ""
    generation: int = 0
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    finalizers: list[str] = field(default_factory=list)
    deletion_timestamp: datetime | None = None


@dataclass
class InstanaAgent:
    """The agents API resource."""

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: InstanaAgentSpec = field(default_factory=InstanaAgentSpec)
    status: InstanaAgentStatus = field(default_factory=InstanaAgentStatus)
    api_version: str = GROUP_VERSION.api_version
    kind: str = "InstanaAgent"

    def default(self) -> None:
        """Fill in every unset field that has a default, in place."""
        agent = self.spec.agent
        agent.endpoint_host = agent.endpoint_host or DEFAULT_ENDPOINT_HOST
        agent.endpoint_port = agent.endpoint_port or DEFAULT_ENDPOINT_PORT
        agent.image.name = agent.image.name or DEFAULT_AGENT_IMAGE
        agent.image.tag = agent.image.tag or DEFAULT_IMAGE_TAG
        agent.image.pull_policy = agent.image.pull_policy or PullPolicy.ALWAYS

        strategy = agent.update_strategy
        strategy.type = strategy.type or ROLLING_UPDATE_STRATEGY
        if strategy.rolling_update is None:
            strategy.rolling_update = RollingUpdateDaemonSet()
        if strategy.rolling_update.max_unavailable is None:
            strategy.rolling_update.max_unavailable = DEFAULT_MAX_UNAVAILABLE

        for create in (self.spec.rbac, self.spec.service, self.spec.service_account.create):
            if create.create is None:
                create.create = True

        sensor = self.spec.k8s_sensor
        sensor.image.name = sensor.image.name or DEFAULT_K8S_SENSOR_IMAGE
        sensor.image.tag = sensor.image.tag or DEFAULT_IMAGE_TAG
        sensor.image.pull_policy = sensor.image.pull_policy or PullPolicy.ALWAYS
        sensor.deployment.replicas = sensor.deployment.replicas or DEFAULT_K8S_SENSOR_REPLICAS

    def deep_copy(self) -> InstanaAgent:
        """An independent copy of the whole resource."""
        return copy.deepcopy(self)


@dataclass
class InstanaAgentList:
    """A list of agent resources."""

    items: list[InstanaAgent] = field(default_factory=list)
    resource_version: str = ""
    api_version: str = GROUP_VERSION.api_version
    kind: str = "InstanaAgentList"