# instana_operator

A pure-Python model of the Instana agent custom resource (`instana.io/v1`,
kind `InstanaAgent`) together with the decision logic an operator needs around
it: spec defaulting, image and resource resolution, OpenTelemetry switches,
backend enumeration, watch-event filtering, reconcile step outcomes and cleanup
of resources left behind by older operator releases.

It has no runtime dependencies.

## Modules

- `instana_operator.api_types` – the building blocks of an agent spec:
  `ImageSpec` (with `image()`), `ExtendedImageSpec`, `ResourceRequirements`
  (with `get_or_default()`), `OpenTelemetry`, `Enabled`, `Create`, `Name`,
  `BackendSpec`, `BaseAgentSpec`, `K8sSpec`, `KubernetesDeploymentSpec`, `Zone`,
  the `AgentMode` and `PullPolicy` enums, and `Quantity` with `parse_quantity`,
  which reads amounts such as `768Mi`, `0.5` or `1e3` and raises `ValueError`
  on malformed input. Quantities compare by value.
- `instana_operator.agent` – `InstanaAgent` with `InstanaAgentSpec`,
  `InstanaAgentStatus`, `ObjectMeta` and `InstanaAgentList`.
  `InstanaAgent.default()` fills in unset fields in place;
  `InstanaAgent.deep_copy()` returns an independent copy. `InstanaAgentStatus`
  rejects a negative observed generation or an operator version that is not a
  semantic version.
- `instana_operator.reconcile` – `ReconcileReturn` built by `reconcile_success`,
  `reconcile_failure` and `reconcile_continue`. `supplies_reconcile_result()`
  tells whether a step ends the reconcile; `reconcile_result()` returns the
  `ReconcileResult` or raises the recorded error.
- `instana_operator.event_filter` – `EventFilter` decides which create, update
  and delete events trigger a reconcile; `was_modified_by_other` checks the
  `ManagedFieldsEntry` records of a `WatchedObject` for changes made by a
  manager other than `instana-agent-operator` after the operator's own.
- `instana_operator.backends` – `get_k8s_sensor_backends` lists the main
  backend (suffix `""`) followed by each additional backend (suffixes `-1`,
  `-2`, …) as `K8SensorBackend` values.
- `instana_operator.cleanup` – `cleanup_old_operator` removes the old
  `controller-manager` deployment, the `manager-role` cluster role (only if one
  of its rules names the `instana.io` API group) and the `manager-rolebinding`
  binding (only if it has the `instana-agent-operator` service account as a
  subject), through any object implementing the `ClusterClient` protocol. It
  logs failures instead of raising them and returns the objects it deleted.
  `version_info` logs and returns the version lines.

## Examples

Resolving an image reference (a digest wins over a tag):

```python
from instana_operator.api_types import ImageSpec

ImageSpec(name="icr.io/instana/agent", tag="1.2.3").image()
# 'icr.io/instana/agent:1.2.3'
```

Resource defaults for memory and CPU:

```python
from instana_operator.api_types import ResourceRequirements, parse_quantity

resources = ResourceRequirements(limits={"cpu": parse_quantity("4.5")}).get_or_default()
str(resources.requests["memory"])  # '768Mi'
str(resources.limits["cpu"])       # '4.5'
```

OpenTelemetry endpoints are on unless switched off, and the per-protocol
setting wins over the legacy one:

```python
from instana_operator.api_types import Enabled, OpenTelemetry

otlp = OpenTelemetry(grpc=Enabled(enabled=False))
otlp.grpc_is_enabled()  # False
otlp.is_enabled()       # True, HTTP is still on
```

Applying defaults to an agent:

```python
from instana_operator.agent import InstanaAgent

agent = InstanaAgent()
agent.default()
agent.spec.agent.endpoint_host           # 'ingress-red-saas.instana.io'
agent.spec.k8s_sensor.deployment.replicas  # 3
```

Listing the backends the Kubernetes sensor reports to:

```python
from instana_operator.backends import get_k8s_sensor_backends

for backend in get_k8s_sensor_backends(agent):
    print(backend.resource_suffix, backend.endpoint_host)
```

Ending or continuing a reconcile step:

```python
from instana_operator.reconcile import ReconcileResult, reconcile_continue, reconcile_success

reconcile_continue().supplies_reconcile_result()  # False
reconcile_success(ReconcileResult(requeue=True)).reconcile_result().requeue  # True
```

## What this package does not do

It does not talk to a Kubernetes cluster by itself, run a controller loop,
serve metrics or health probes, or build the DaemonSet, Deployment, Secret,
Service and RBAC objects for an agent. There is no command to run. Cluster
access for `cleanup_old_operator` has to be supplied as a `ClusterClient`
implementation.

## Tests

The test suite uses pytest and is installed with the `test` extra.