import itertools
from fractions import Fraction

import pytest

from instana_operator.api_types import (
    RESOURCE_CPU,
    RESOURCE_MEMORY,
    Enabled,
    ImageSpec,
    OpenTelemetry,
    ResourceRequirements,
    parse_quantity,
)

DIGEST = "sha256:61417f330b2eb7eff88ccb9812921b65a31bf350fe9efdcb6663a29759c47fe4"
NAME = "icr.io/instana/instana-agent-operator"

ON = Enabled(True)
OFF = Enabled(False)


@pytest.mark.parametrize(
    "spec, expected",
    [
        (ImageSpec(name=NAME, digest=DIGEST), f"{NAME}@{DIGEST}"),
        (ImageSpec(name=NAME, digest=DIGEST, tag="2.0.10"), f"{NAME}@{DIGEST}"),
        (ImageSpec(name=NAME, tag="2.0.10"), f"{NAME}:2.0.10"),
        (ImageSpec(name=f"{NAME}:2.0.10"), f"{NAME}:2.0.10"),
    ],
    ids=["with_digest", "with_digest_and_tag", "with_tag", "with_name_only"],
)
def test_image(spec, expected):
    assert spec.image() == expected


@pytest.mark.parametrize(
    "otel, expected",
    [
        (OpenTelemetry(), True),
        (OpenTelemetry(enabled=Enabled(True)), True),
        (OpenTelemetry(enabled=Enabled(False)), False),
        (OpenTelemetry(grpc=Enabled(True)), True),
        (OpenTelemetry(grpc=Enabled(False)), False),
        (OpenTelemetry(enabled=Enabled(True), grpc=Enabled(True), http=Enabled(True)), True),
        (OpenTelemetry(enabled=Enabled(False), grpc=Enabled(False), http=Enabled(False)), False),
        (OpenTelemetry(enabled=Enabled(True), grpc=Enabled(False)), False),
        (OpenTelemetry(enabled=Enabled(False), grpc=Enabled(True)), True),
        (OpenTelemetry(grpc=Enabled(True), http=Enabled(True)), True),
        (OpenTelemetry(grpc=Enabled(False), http=Enabled(True)), False),
        (OpenTelemetry(grpc=Enabled(True), http=Enabled(False)), True),
    ],
)
def test_grpc_is_enabled(otel, expected):
    assert otel.grpc_is_enabled() is expected


@pytest.mark.parametrize(
    "otel, expected",
    [
        (OpenTelemetry(), True),
        (OpenTelemetry(enabled=Enabled(True)), True),
        (OpenTelemetry(enabled=Enabled(False)), False),
        (OpenTelemetry(http=Enabled(True)), True),
        (OpenTelemetry(http=Enabled(False)), False),
        (OpenTelemetry(enabled=Enabled(True), grpc=Enabled(True), http=Enabled(True)), True),
        (OpenTelemetry(enabled=Enabled(False), grpc=Enabled(False), http=Enabled(False)), False),
        (OpenTelemetry(enabled=Enabled(True), http=Enabled(False)), False),
        (OpenTelemetry(enabled=Enabled(False), http=Enabled(True)), True),
        (OpenTelemetry(grpc=Enabled(True), http=Enabled(True)), True),
        (OpenTelemetry(grpc=Enabled(True), http=Enabled(False)), False),
        (OpenTelemetry(grpc=Enabled(False), http=Enabled(True)), True),
    ],
)
def test_http_is_enabled(otel, expected):
    assert otel.http_is_enabled() is expected


@pytest.mark.parametrize(
    "otel, expected",
    [
        (OpenTelemetry(), True),
        (OpenTelemetry(enabled=Enabled(True)), True),
        (OpenTelemetry(enabled=Enabled(False)), False),
        (OpenTelemetry(http=Enabled(True)), True),
        (OpenTelemetry(http=Enabled(False)), True),
        (OpenTelemetry(grpc=Enabled(False)), True),
        (OpenTelemetry(enabled=Enabled(True), grpc=Enabled(True), http=Enabled(True)), True),
        (OpenTelemetry(enabled=Enabled(False), grpc=Enabled(False), http=Enabled(False)), False),
        (OpenTelemetry(enabled=Enabled(True), grpc=Enabled(False), http=Enabled(False)), False),
        (OpenTelemetry(grpc=Enabled(False), http=Enabled(True)), True),
        (OpenTelemetry(grpc=Enabled(True), http=Enabled(False)), True),
    ],
)
def test_is_enabled(otel, expected):
    assert otel.is_enabled() is expected


_RESOURCE_CASES = list(
    itertools.product(["", "123Mi"], ["", "1.2"], ["", "456Mi"], ["", "4.5"])
)


@pytest.mark.parametrize("mem_req, cpu_req, mem_lim, cpu_lim", _RESOURCE_CASES)
def test_get_or_default(mem_req, cpu_req, mem_lim, cpu_lim):
    provided = ResourceRequirements()
    if mem_lim:
        provided.limits[RESOURCE_MEMORY] = parse_quantity(mem_lim)
    if cpu_lim:
        provided.limits[RESOURCE_CPU] = parse_quantity(cpu_lim)
    if mem_req:
        provided.requests[RESOURCE_MEMORY] = parse_quantity(mem_req)
    if cpu_req:
        provided.requests[RESOURCE_CPU] = parse_quantity(cpu_req)

    actual = provided.get_or_default()

    assert actual.limits[RESOURCE_MEMORY] == parse_quantity(mem_lim or "768Mi")
    assert actual.limits[RESOURCE_CPU] == parse_quantity(cpu_lim or "1.5")
    assert actual.requests[RESOURCE_MEMORY] == parse_quantity(mem_req or "768Mi")
    assert actual.requests[RESOURCE_CPU] == parse_quantity(cpu_req or "0.5")


def test_get_or_default_leaves_original_untouched():
    provided = ResourceRequirements()
    provided.get_or_default()
    assert provided.requests == {}
    assert provided.limits == {}


def test_parse_quantity_binary_suffix():
    assert parse_quantity("768Mi").value == 768 * 1024 * 1024
    assert parse_quantity("1Ki").value == 1024


def test_parse_quantity_decimal_values():
    assert parse_quantity("0.5").value == Fraction(1, 2)
    assert parse_quantity("1.5") == parse_quantity("1500m")
    assert parse_quantity("1k") == parse_quantity("1e3")
    assert parse_quantity("2E").value == 2 * 10**18


def test_parse_quantity_keeps_text():
    assert str(parse_quantity("768Mi")) == "768Mi"


@pytest.mark.parametrize("text", ["", "abc", "1.2.3", "12Xi", "Mi"])
def test_parse_quantity_rejects_garbage(text):
    with pytest.raises(ValueError):
        parse_quantity(text)


@pytest.mark.parametrize(
    "enabled, expected", [(Enabled(), "nil"), (ON, "true"), (OFF, "false")]
)
def test_enabled_str(enabled, expected):
    assert str(enabled) == expected