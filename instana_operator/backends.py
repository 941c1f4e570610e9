"""Backends that each K8s sensor deployment reports to."""

from __future__ import annotations

from dataclasses import dataclass

from instana_operator.agent import InstanaAgent


@dataclass(frozen=True)
class K8SensorBackend:
    """One backend endpoint, with the suffix its resources are named with."""

    resource_suffix: str
    endpoint_key: str
    download_key: str
    endpoint_host: str
    endpoint_port: str


def get_k8s_sensor_backends(agent: InstanaAgent) -> list[K8SensorBackend]:
    """The main backend followed by each additional backend, numbered from 1."""
    spec = agent.spec.agent
    main = K8SensorBackend(
        resource_suffix="",
        endpoint_key=spec.key,
        download_key=spec.download_key,
        endpoint_host=spec.endpoint_host,
        endpoint_port=spec.endpoint_port,
    )
    additional = [
        K8SensorBackend(
            resource_suffix=f"-{number}",
            endpoint_key=backend.key,
            download_key="",
            endpoint_host=backend.endpoint_host,
            endpoint_port=backend.endpoint_port,
        )
        for number, backend in enumerate(spec.additional_backends, start=1)
    ]
    return [main, *additional]