"""Inline specification types of the Instana agent custom resource."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from fractions import Fraction

RESOURCE_MEMORY = "memory"
RESOURCE_CPU = "cpu"

ROLLING_UPDATE_STRATEGY = "RollingUpdate"
ON_DELETE_STRATEGY = "OnDelete"

_BINARY_SUFFIXES = {
    "Ki": 2**10,
    "Mi": 2**20,
    "Gi": 2**30,
    "Ti": 2**40,
    "Pi": 2**50,
    "Ei": 2**60,
}

_DECIMAL_SUFFIXES = {
    "n": Fraction(1, 10**9),
    "u": Fraction(1, 10**6),
    "m": Fraction(1, 10**3),
    "": Fraction(1),
    "k": Fraction(10**3),
    "M": Fraction(10**6),
    "G": Fraction(10**9),
    "T": Fraction(10**12),
    "P": Fraction(10**15),
    "E": Fraction(10**18),
}

_QUANTITY_PATTERN = re.compile(
    r"^(?P<number>[+-]?(?:\d+\.?\d*|\.\d+))"
    r"(?:(?P<exponent>[eE][+-]?\d+)|(?P<suffix>Ki|Mi|Gi|Ti|Pi|Ei|n|u|m|k|M|G|T|P|E)?)$"
)


@dataclass(frozen=True, order=True)
class Quantity:
    """A resource amount such as ``768Mi`` or ``0.5``; compared by value."""

    value: Fraction
    text: str = field(default="", compare=False)

    def __str__(self) -> str:
        return self.text or str(self.value)


def parse_quantity(text: str) -> Quantity:
    """Parse a resource quantity string, raising ValueError when malformed."""
    stripped = text.strip()
    match = _QUANTITY_PATTERN.match(stripped)
    if match is None:
        raise ValueError(f"quantities must match the regular expression: {text!r}")
    number = Fraction(match.group("number"))
    exponent = match.group("exponent")
    if exponent is not None:
        value = number * Fraction(10) ** int(exponent[1:])
    else:
        suffix = match.group("suffix") or ""
        multiplier = _BINARY_SUFFIXES.get(suffix)
        value = number * (multiplier if multiplier is not None else _DECIMAL_SUFFIXES[suffix])
    return Quantity(value, stripped)


class AgentMode(str, Enum):
    APM = "APM"
    INFRASTRUCTURE = "INFRASTRUCTURE"
    AWS = "AWS"
    KUBERNETES = "KUBERNETES"


class PullPolicy(str, Enum):
    ALWAYS = "Always"
    NEVER = "Never"
    IF_NOT_PRESENT = "IfNotPresent"


@dataclass
class Name:
    name: str = ""


@dataclass
class Create:
    create: bool | None = None


@dataclass
class Enabled:
    enabled: bool | None = None

    def __str__(self) -> str:
        if self.enabled is None:
            return "nil"
        return "true" if self.enabled else "false"


@dataclass
class RollingUpdateDaemonSet:
    max_unavailable: int | str | None = None
    max_surge: int | str | None = None


@dataclass
class DaemonSetUpdateStrategy:
    type: str = ""
    rolling_update: RollingUpdateDaemonSet | None = None


_REQUEST_DEFAULTS = {RESOURCE_MEMORY: "768Mi", RESOURCE_CPU: "0.5"}
_LIMIT_DEFAULTS = {RESOURCE_MEMORY: "768Mi", RESOURCE_CPU: "1.5"}


@dataclass
class ResourceRequirements:
    requests: dict[str, Quantity] = field(default_factory=dict)
    limits: dict[str, Quantity] = field(default_factory=dict)

    def get_or_default(self) -> ResourceRequirements:
        """Return a copy with memory and CPU requests and limits filled in where absent."""
        requests = {name: parse_quantity(text) for name, text in _REQUEST_DEFAULTS.items()}
        requests.update(self.requests)
        limits = {name: parse_quantity(text) for name, text in _LIMIT_DEFAULTS.items()}
        limits.update(self.limits)
        return replace(self, requests=requests, limits=limits)


@dataclass
class AgentPodSpec:
    annotations: dict[str, str] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)
    tolerations: list[dict] = field(default_factory=list)
    affinity: dict = field(default_factory=dict)
    priority_class_name: str = ""
    resources: ResourceRequirements = field(default_factory=ResourceRequirements)
    node_selector: dict[str, str] = field(default_factory=dict)
    volumes: list[dict] = field(default_factory=list)
    volume_mounts: list[dict] = field(default_factory=list)


@dataclass
class TlsSpec:
    secret_name: str = ""
    certificate: bytes = b""
    key: bytes = b""


@dataclass
class ImageSpec:
    name: str = ""
    digest: str = ""
    tag: str = ""
    pull_policy: PullPolicy | None = None

    def image(self) -> str:
        """The full image reference; a digest takes priority over a tag."""
        if self.digest:
            return f"{self.name}@{self.digest}"
        if self.tag:
            return f"{self.name}:{self.tag}"
        return self.name


@dataclass
class ExtendedImageSpec(ImageSpec):
    pull_secrets: list[str] = field(default_factory=list)


@dataclass
class HostSpec:
    repository: str = ""


@dataclass
class ServiceMeshSpec:
    enabled: bool = False


@dataclass
class Prometheus:
    remote_write: Enabled = field(default_factory=Enabled)


@dataclass
class BackendSpec:
    endpoint_host: str
    endpoint_port: str
    key: str = ""


@dataclass
class BaseAgentSpec:
    mode: AgentMode | None = None
    key: str = ""
    download_key: str = ""
    keys_secret: str = ""
    listen_address: str = ""
    endpoint_host: str = ""
    endpoint_port: str = ""
    min_ready_seconds: int = 0
    additional_backends: list[BackendSpec] = field(default_factory=list)
    tls: TlsSpec = field(default_factory=TlsSpec)
    image: ExtendedImageSpec = field(default_factory=ExtendedImageSpec)
    update_strategy: DaemonSetUpdateStrategy = field(default_factory=DaemonSetUpdateStrategy)
    pod: AgentPodSpec = field(default_factory=AgentPodSpec)
    proxy_host: str = ""
    proxy_port: str = ""
    proxy_protocol: str = ""
    proxy_user: str = ""
    proxy_password: str = ""
    proxy_use_dns: bool = False
    env: dict[str, str] = field(default_factory=dict)
    configuration_yaml: str = ""
    redact_kubernetes_secrets: str = ""
    host: HostSpec = field(default_factory=HostSpec)
    service_mesh: ServiceMeshSpec = field(default_factory=ServiceMeshSpec)
    mvn_repo_url: str = ""
    mvn_repo_features_path: str = ""
    mvn_repo_shared_path: str = ""
    mirror_release_repo_url: str = ""
    mirror_release_repo_username: str = ""
    mirror_release_repo_password: str = ""
    mirror_shared_repo_url: str = ""
    mirror_shared_repo_username: str = ""
    mirror_shared_repo_password: str = ""


@dataclass
class ServiceAccountSpec:
    create: Create = field(default_factory=Create)
    name: Name = field(default_factory=Name)
    annotations: dict[str, str] = field(default_factory=dict)


@dataclass
class PodSecurityPolicySpec:
    enabled: Enabled = field(default_factory=Enabled)
    name: Name = field(default_factory=Name)


@dataclass
class KubernetesPodSpec:
    resources: ResourceRequirements = field(default_factory=ResourceRequirements)
    node_selector: dict[str, str] = field(default_factory=dict)
    priority_class_name: str = ""
    tolerations: list[dict] = field(default_factory=list)
    affinity: dict = field(default_factory=dict)


@dataclass
class KubernetesDeploymentSpec:
    enabled: Enabled = field(default_factory=Enabled)
    min_ready_seconds: int = 0
    replicas: int = 0
    pod: KubernetesPodSpec = field(default_factory=KubernetesPodSpec)


@dataclass
class KubernetesSpec:
    deployment: KubernetesDeploymentSpec = field(default_factory=KubernetesDeploymentSpec)


@dataclass
class K8sSpec:
    deployment: KubernetesDeploymentSpec = field(default_factory=KubernetesDeploymentSpec)
    image: ImageSpec = field(default_factory=ImageSpec)
    pod_disruption_budget: Enabled = field(default_factory=Enabled)


@dataclass
class OpenTelemetry:
    enabled: Enabled = field(default_factory=Enabled)
    grpc: Enabled | None = None
    http: Enabled | None = None

    def _resolve(self, specific: Enabled | None) -> bool:
        if specific is not None and specific.enabled is not None:
            return specific.enabled
        if self.enabled.enabled is False:
            return False
        return True

    def grpc_is_enabled(self) -> bool:
        """True unless the gRPC setting, or failing that the legacy setting, opts out."""
        return self._resolve(self.grpc)

    def http_is_enabled(self) -> bool:
        """True unless the HTTP setting, or failing that the legacy setting, opts out."""
        return self._resolve(self.http)

    def is_enabled(self) -> bool:
        return self.grpc_is_enabled() or self.http_is_enabled()


@dataclass
class Zone:
    name: Name = field(default_factory=Name)
    tolerations: list[dict] = field(default_factory=list)
    affinity: dict = field(default_factory=dict)
    mode: AgentMode | None = None