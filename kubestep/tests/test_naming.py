"""Tests for Kubernetes name translation."""

import pytest
from kubestep.src.errors import VolumeSpecError
from kubestep.src.k8s.naming import (
    dns_name,
    parse_volume_spec,
    parse_volume_binding,
    volume_name,
    volume_mount_path,
)

@pytest.mark.parametrize("identifier", [
    "pipeline_clone",
    "__a__b__",
    "build_step_1",
    "already-fine",
])
def test_dns_name_is_idempotent(identifier):
    once = dns_name(identifier)
    assert "_" not in once
    assert dns_name(once) == once

def test_dns_name_replaces_every_underscore():
    assert dns_name("x_y_z") == "x-y-z"

def test_parse_volume_spec():
    assert parse_volume_spec("cache:/mnt/cache") == ("cache", "/mnt/cache")

def test_parse_volume_spec_translates_name():
    assert parse_volume_spec("pipeline_default:/drone/src") == ("pipeline-default", "/drone/src")

def test_parse_volume_spec_splits_on_first_colon():
    assert parse_volume_spec("data:/mnt/a:ro") == ("data", "/mnt/a:ro")

def test_parse_volume_spec_without_colon():
    with pytest.raises(VolumeSpecError, match="no mount path"):
        parse_volume_spec("cache")

def test_volume_spec_error_is_value_error():
    with pytest.raises(ValueError):
        volume_mount_path("cache")

def test_volume_name_accepts_bare_name():
    assert volume_name("pipeline_default") == "pipeline-default"
    assert volume_name("pipeline_default:/src") == "pipeline-default"

def test_parse_volume_binding():
    binding = parse_volume_binding("my_cache:/cache")
    assert binding.name == "my-cache"
    assert binding.mount_path == "/cache"
