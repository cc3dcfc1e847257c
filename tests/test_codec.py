import base64

import pytest

from maas_exerciser.client.codec import (
    decode_constraint_matches,
    decode_device,
    decode_fabric,
    decode_file,
    decode_machine,
)
from maas_exerciser.core.errors import ResponseDecodeError


def machine_payload() -> dict:
    boot = {
        "id": 12,
        "name": "eno1",
        "type": "physical",
        "mac_address": "52:54:00:aa:bb:cc",
        "enabled": True,
        "resource_uri": "/MAAS/api/2.0/nodes/abc/interfaces/12/",
        "links": [
            {
                "id": 80,
                "mode": "auto",
                "ip_address": "10.0.0.5",
                "subnet": {"id": 3, "name": "pxe", "cidr": "10.0.0.0/24", "vlan": {"id": 5001}},
            },
            {"id": 81, "mode": "link_up"},
        ],
    }
    return {
        "system_id": "abc",
        "hostname": "node1",
        "fqdn": "node1.maas",
        "osystem": "ubuntu",
        "distro_series": "jammy",
        "power_state": "on",
        "status_name": "Deployed",
        "zone": {"name": "default"},
        "interface_set": [boot],
        "boot_interface": boot,
    }


def test_decode_machine_with_boot_interface_and_links():
    machine = decode_machine(machine_payload())

    assert machine.system_id == "abc"
    assert machine.zone == "default"
    assert machine.boot_interface is not None
    first, second = machine.boot_interface.links
    assert first.subnet is not None
    assert first.subnet.name == "pxe"
    assert first.subnet.vlan_id == 5001
    assert second.subnet is None


def test_decode_machine_without_boot_interface():
    payload = machine_payload()
    payload["boot_interface"] = None
    payload["interface_set"] = []

    machine = decode_machine(payload)

    assert machine.boot_interface is None
    assert machine.interfaces == []


def test_decode_machine_rejects_missing_system_id():
    payload = machine_payload()
    del payload["system_id"]

    with pytest.raises(ResponseDecodeError):
        decode_machine(payload)


def test_decode_device_parent_and_addresses():
    device = decode_device(
        {
            "system_id": "d1",
            "hostname": "dev1",
            "parent": "abc",
            "ip_addresses": ["10.0.0.9"],
            "interface_set": [],
        }
    )

    assert device.parent == "abc"
    assert device.ip_addresses == ["10.0.0.9"]


def test_decode_fabric_counts_vlans():
    fabric = decode_fabric({"id": 0, "name": "fabric-0", "vlans": [{"id": 1, "vid": 0}, {"id": 2, "vid": 20}]})

    assert len(fabric.vlans) == 2
    assert fabric.vlans[1].vid == 20


def test_decode_file_content_is_base64():
    f = decode_file({"filename": "a", "content": base64.b64encode(b"hello").decode("ascii")})
    assert f.content == b"hello"

    listed = decode_file({"filename": "a", "anon_resource_uri": "/MAAS/api/2.0/files/?op=get_by_key&key=k"})
    assert listed.content is None

    with pytest.raises(ResponseDecodeError):
        decode_file({"filename": "a", "content": "not base64!"})


def test_decode_constraint_matches():
    matches = decode_constraint_matches({"interfaces": {"eth": [1, 2]}})

    assert matches.interfaces == {"eth": [1, 2]}
    assert matches.storage == {}
    assert decode_constraint_matches(None).interfaces == {}
