"""Removal of resources left behind by older operator installations."""

from __future__ import annotations

import logging
import platform
import sys
from dataclasses import dataclass, field
from typing import Iterable, Protocol, Union

from instana_operator.event_filter import FIELD_OWNER_NAME

log = logging.getLogger(__name__)

LABEL_KEY = "app.kubernetes.io/name"
OLD_DEPLOYMENT_NAME = "controller-manager"
OLD_CLUSTER_ROLE_NAME = "manager-role"
OLD_CLUSTER_ROLE_BINDING_NAME = "manager-rolebinding"
INSTANA_API_GROUP = "instana.io"

OPERATOR_VERSION = "dev"
GIT_COMMIT = "unknown"


class NotFoundError(Exception):
    """The requested object does not exist in the cluster."""


@dataclass
class PolicyRule:
    api_groups: list[str] = field(default_factory=list)
    resources: list[str] = field(default_factory=list)
    verbs: list[str] = field(default_factory=list)


@dataclass
class Subject:
    kind: str
    name: str
    namespace: str = ""


@dataclass
class ClusterRole:
    name: str
    rules: list[PolicyRule] = field(default_factory=list)


@dataclass
class ClusterRoleBinding:
    name: str
    subjects: list[Subject] = field(default_factory=list)


@dataclass
class Deployment:
    name: str
    namespace: str = ""
    labels: dict[str, str] = field(default_factory=dict)


Resource = Union[Deployment, ClusterRole, ClusterRoleBinding]


class ClusterClient(Protocol):
    """The cluster operations the cleanup needs."""

    def list_deployments(self, name: str, labels: dict[str, str]) -> Iterable[Deployment]:
        """Deployments in all namespaces with this name and these labels."""

    def get_cluster_role(self, name: str) -> ClusterRole:
        """The named cluster role; raises NotFoundError when absent."""

    def get_cluster_role_binding(self, name: str) -> ClusterRoleBinding:
        """The named cluster role binding; raises NotFoundError when absent."""

    def delete(self, obj: Resource) -> None:
        """Delete the object."""


def _delete(client: ClusterClient, obj: Resource, kind: str, deleted: list[Resource]) -> None:
    try:
        client.delete(obj)
    except Exception:
        log.info("Failed to delete the old operator %s %s", kind, obj.name)
    else:
        log.info("Successfully deleted the %s %s", kind, obj.name)
        deleted.append(obj)


def _cleanup_deployments(client: ClusterClient, deleted: list[Resource]) -> None:
    log.info("Delete the old deployment if present")
    labels = {LABEL_KEY: FIELD_OWNER_NAME}
    try:
        deployments = list(client.list_deployments(OLD_DEPLOYMENT_NAME, labels))
    except Exception:
        log.info(
            "Failed to get list the deployment with the label %s:%s and name %s",
            LABEL_KEY,
            FIELD_OWNER_NAME,
            OLD_DEPLOYMENT_NAME,
        )
        return
    log.info("Found %d deployments that match the criteria", len(deployments))
    for deployment in deployments:
        log.info(
            "Deleting the old operator deployment %s in namespace %s",
            OLD_DEPLOYMENT_NAME,
            deployment.namespace,
        )
        _delete(client, deployment, "deployment", deleted)


def _cleanup_cluster_role(client: ClusterClient, deleted: list[Resource]) -> None:
    log.info("Delete old RBAC resources if present")
    try:
        role = client.get_cluster_role(OLD_CLUSTER_ROLE_NAME)
    except NotFoundError:
        log.info("Old operator clusterrole is not present in the cluster")
        return
    except Exception:
        log.exception("Failed to get the old operator clusterrole %s", OLD_CLUSTER_ROLE_NAME)
        return
    if not any(INSTANA_API_GROUP in rule.api_groups for rule in role.rules):
        log.info(
            "ClusterRole with name %s found, but it's not coming from instana; skipping the deletion",
            OLD_CLUSTER_ROLE_NAME,
        )
        return
    log.info("Deleting the old operator clusterrole %s", OLD_CLUSTER_ROLE_NAME)
    _delete(client, role, "clusterrole", deleted)


def _cleanup_cluster_role_binding(client: ClusterClient, deleted: list[Resource]) -> None:
    try:
        binding = client.get_cluster_role_binding(OLD_CLUSTER_ROLE_BINDING_NAME)
    except NotFoundError:
        log.info("Old operator clusterrolebinding is not present in the cluster")
        return
    except Exception:
        log.exception(
            "Failed to get the old operator clusterrolebinding %s", OLD_CLUSTER_ROLE_BINDING_NAME
        )
        return
    if not any(
        subject.kind == "ServiceAccount" and subject.name == FIELD_OWNER_NAME
        for subject in binding.subjects
    ):
        log.info(
            "ClusterRoleBinding with name %s found, but the SA doesn't match; skipping the deletion",
            OLD_CLUSTER_ROLE_BINDING_NAME,
        )
        return
    log.info("Deleting the old operator clusterrolebinding %s", OLD_CLUSTER_ROLE_BINDING_NAME)
    _delete(client, binding, "clusterrolebinding", deleted)


def cleanup_old_operator(client: ClusterClient) -> list[Resource]:
    """Delete the old operator deployment and RBAC objects; return what was deleted.

    Failures are logged and never raised, so the operator can always start.
    """
    deleted: list[Resource] = []
    _cleanup_deployments(client, deleted)
    _cleanup_cluster_role(client, deleted)
    _cleanup_cluster_role_binding(client, deleted)
    return deleted


def version_info() -> list[str]:
    """Log and return the operator and runtime version lines."""
    lines = [
        f"Operator Version: {OPERATOR_VERSION}",
        f"Operator Git Commit SHA: {GIT_COMMIT}",
        f"Python Version: {platform.python_version()}",
        f"OS/Arch: {sys.platform}/{platform.machine()}",
    ]
    for line in lines:
        log.info(line)
    return lines