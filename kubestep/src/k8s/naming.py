"""
Translate pipeline identifiers into Kubernetes object names.
"""

from typing import Tuple

from kubestep.src.errors import VolumeSpecError
from kubestep.src.models.step import VolumeBinding

def dns_name(identifier: str) -> str:
    """
    Make an identifier legal as a Kubernetes object name.
    Only underscores are rewritten; other illegal characters must be
    removed before names reach the engine.
    """
    return identifier.replace("_", "-")

def parse_volume_spec(spec: str) -> Tuple[str, str]:
    """Split a 'name:/mount/path' binding into its name and mount path."""
    name, sep, mount_path = spec.partition(":")
    if not sep:
        raise VolumeSpecError(f"Volume '{spec}' has no mount path")
    return dns_name(name), mount_path

def parse_volume_binding(spec: str) -> VolumeBinding:
    name, mount_path = parse_volume_spec(spec)
    return VolumeBinding(name=name, mount_path=mount_path)

def volume_name(spec: str) -> str:
    """Claim name for a binding or a bare volume name."""
    return dns_name(spec.partition(":")[0])

def volume_mount_path(spec: str) -> str:
    return parse_volume_spec(spec)[1]
