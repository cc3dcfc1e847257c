"""
Service payload codec.

Converts MAAS 2.0 JSON payloads into the core types.

Decoding is strict about the fields the workflows rely on, such as system ids,
hostnames and interface names, and lenient about descriptive fields, which
default to empty values. Shape errors raise ResponseDecodeError.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any

from maas_exerciser.core.errors import ResponseDecodeError
from maas_exerciser.core.types import (
    ConstraintMatches,
    Device,
    Fabric,
    File,
    Interface,
    Link,
    Machine,
    Subnet,
    Vlan,
    Zone,
)


def _require_dict(value: Any, name: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ResponseDecodeError(f"{name} must be an object")
    return value


def _require_list(value: Any, name: str) -> list[Any]:
    if not isinstance(value, list):
        raise ResponseDecodeError(f"{name} must be a list")
    return value


def _require_str(value: Any, name: str) -> str:
    if not isinstance(value, str) or not value:
        raise ResponseDecodeError(f"{name} must be a non empty string")
    return value


def _require_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ResponseDecodeError(f"{name} must be an integer")
    return value


def _optional_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _zone_name(value: Any) -> str:
    if isinstance(value, dict):
        return _optional_str(value.get("name"))
    return _optional_str(value)


def decode_list(payload: Any, name: str, decode: Any) -> list[Any]:
    """Decode a JSON list of objects with the given item decoder."""
    items = _require_list(payload, name)
    return [decode(item) for item in items]


def decode_zone(payload: Any) -> Zone:
    obj = _require_dict(payload, "zone")
    return Zone(
        name=_require_str(obj.get("name"), "zone.name"),
        description=_optional_str(obj.get("description")),
    )


def decode_vlan(payload: Any) -> Vlan:
    obj = _require_dict(payload, "vlan")
    return Vlan(
        id=_require_int(obj.get("id"), "vlan.id"),
        name=_optional_str(obj.get("name")),
        vid=int(obj.get("vid") or 0),
        mtu=int(obj.get("mtu") or 1500),
    )


def decode_fabric(payload: Any) -> Fabric:
    obj = _require_dict(payload, "fabric")
    vlans_raw = obj.get("vlans") or []
    return Fabric(
        id=_require_int(obj.get("id"), "fabric.id"),
        name=_optional_str(obj.get("name")),
        vlans=decode_list(vlans_raw, "fabric.vlans", decode_vlan),
    )


def decode_subnet(payload: Any) -> Subnet:
    obj = _require_dict(payload, "subnet")
    vlan_id: int | None = None
    vlan = obj.get("vlan")
    if isinstance(vlan, dict) and isinstance(vlan.get("id"), int):
        vlan_id = vlan["id"]
    return Subnet(
        id=_require_int(obj.get("id"), "subnet.id"),
        name=_require_str(obj.get("name"), "subnet.name"),
        cidr=_optional_str(obj.get("cidr")),
        vlan_id=vlan_id,
    )


def decode_link(payload: Any) -> Link:
    obj = _require_dict(payload, "link")
    subnet_raw = obj.get("subnet")
    subnet = decode_subnet(subnet_raw) if subnet_raw is not None else None
    return Link(
        id=_require_int(obj.get("id"), "link.id"),
        mode=_optional_str(obj.get("mode")),
        subnet=subnet,
        ip_address=_optional_str(obj.get("ip_address")),
    )


def decode_interface(payload: Any) -> Interface:
    obj = _require_dict(payload, "interface")
    links_raw = obj.get("links") or []
    return Interface(
        id=_require_int(obj.get("id"), "interface.id"),
        name=_require_str(obj.get("name"), "interface.name"),
        type=_optional_str(obj.get("type")) or "physical",
        mac_address=_optional_str(obj.get("mac_address")),
        enabled=bool(obj.get("enabled", True)),
        links=decode_list(links_raw, "interface.links", decode_link),
        resource_uri=_optional_str(obj.get("resource_uri")),
    )


def decode_machine(payload: Any) -> Machine:
    obj = _require_dict(payload, "machine")
    interfaces_raw = obj.get("interface_set") or []
    boot_raw = obj.get("boot_interface")
    return Machine(
        system_id=_require_str(obj.get("system_id"), "machine.system_id"),
        hostname=_require_str(obj.get("hostname"), "machine.hostname"),
        fqdn=_optional_str(obj.get("fqdn")),
        osystem=_optional_str(obj.get("osystem")),
        distro_series=_optional_str(obj.get("distro_series")),
        power_state=_optional_str(obj.get("power_state")) or "unknown",
        status_name=_optional_str(obj.get("status_name")),
        zone=_zone_name(obj.get("zone")),
        interfaces=decode_list(interfaces_raw, "machine.interface_set", decode_interface),
        boot_interface=decode_interface(boot_raw) if boot_raw is not None else None,
    )


def decode_device(payload: Any) -> Device:
    obj = _require_dict(payload, "device")
    interfaces_raw = obj.get("interface_set") or []
    addresses_raw = obj.get("ip_addresses") or []
    return Device(
        system_id=_require_str(obj.get("system_id"), "device.system_id"),
        hostname=_require_str(obj.get("hostname"), "device.hostname"),
        fqdn=_optional_str(obj.get("fqdn")),
        parent=_optional_str(obj.get("parent")),
        ip_addresses=[str(a) for a in _require_list(addresses_raw, "device.ip_addresses")],
        zone=_zone_name(obj.get("zone")),
        interfaces=decode_list(interfaces_raw, "device.interface_set", decode_interface),
    )


def decode_file(payload: Any) -> File:
    obj = _require_dict(payload, "file")
    content: bytes | None = None
    content_raw = obj.get("content")
    if content_raw is not None:
        try:
            content = base64.b64decode(_optional_str(content_raw), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ResponseDecodeError("file.content must be base64") from exc
    return File(
        filename=_require_str(obj.get("filename"), "file.filename"),
        anon_resource_uri=_optional_str(obj.get("anon_resource_uri")),
        resource_uri=_optional_str(obj.get("resource_uri")),
        content=content,
    )


def _decode_id_map(payload: Any, name: str) -> dict[str, list[int]]:
    if payload is None:
        return {}
    obj = _require_dict(payload, name)
    out: dict[str, list[int]] = {}
    for label, ids in obj.items():
        out[str(label)] = [_require_int(i, f"{name}.{label}") for i in _require_list(ids, name)]
    return out


def decode_constraint_matches(payload: Any) -> ConstraintMatches:
    """
    Decode constraints_by_type from an allocation response.

    A missing section means the service matched nothing of that kind.
    """
    if payload is None:
        return ConstraintMatches()
    obj = _require_dict(payload, "constraints_by_type")
    return ConstraintMatches(
        interfaces=_decode_id_map(obj.get("interfaces"), "constraints_by_type.interfaces"),
        storage=_decode_id_map(obj.get("storage"), "constraints_by_type.storage"),
    )
