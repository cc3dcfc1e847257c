"""
In memory resource client.

This client is used for tests and local dry runs.
It behaves like a tiny region controller keyed by system id and filename.

Features
- Records every call in order, so tests can assert on call sequences
- Filters listings the way the service does
- Can inject failures per operation, or per operation and target
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field, replace
from typing import Any

from maas_exerciser.client.base import ResourceClient
from maas_exerciser.core.errors import NotFound, RemoteError
from maas_exerciser.core.types import (
    AddFileArgs,
    AllocateMachineArgs,
    ConstraintMatches,
    CreateDeviceArgs,
    CreateMachineDeviceArgs,
    Device,
    DevicesArgs,
    Fabric,
    File,
    Interface,
    Link,
    Machine,
    MachinesArgs,
    ReleaseMachinesArgs,
    StartArgs,
    Subnet,
    Zone,
)


@dataclass
class InMemoryResourceClient(ResourceClient):
    """
    In memory resource client.

    failures
    Optional mapping of operation name, or operation:key, to the exception
    the operation raises. Keys are hostnames for machines and devices and
    filenames for files. Non RemoteError values are wrapped in RemoteError
    with the injected exception as cause.

    calls
    Ordered log of (operation, key) tuples, one per call.
    """

    zone_list: list[Zone] = field(default_factory=list)
    fabric_list: list[Fabric] = field(default_factory=list)
    machine_list: list[Machine] = field(default_factory=list)
    device_list: list[Device] = field(default_factory=list)
    file_store: dict[str, bytes] = field(default_factory=dict)
    failures: dict[str, Exception] = field(default_factory=dict)
    calls: list[tuple[str, str]] = field(default_factory=list)
    allocated: set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        self._ids = itertools.count(1)

    def _enter(self, op: str, key: str = "") -> None:
        self.calls.append((op, key))
        exc = self.failures.get(f"{op}:{key}") or self.failures.get(op)
        if exc is None:
            return
        if isinstance(exc, RemoteError):
            raise exc
        raise RemoteError(f"{op} failed") from exc

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}{next(self._ids)}"

    def _machine_index(self, system_id: str) -> int:
        for i, m in enumerate(self.machine_list):
            if m.system_id == system_id:
                return i
        raise RemoteError(f"machine {system_id!r} does not exist", status=404)

    def operations(self) -> list[str]:
        """Operation names from the call log, in order."""
        return [op for op, _ in self.calls]

    # Zones and fabrics

    def zones(self) -> list[Zone]:
        self._enter("zones")
        return list(self.zone_list)

    def fabrics(self) -> list[Fabric]:
        self._enter("fabrics")
        return list(self.fabric_list)

    # Machines

    def machines(self, args: MachinesArgs) -> list[Machine]:
        self._enter("machines", ",".join(args.system_ids + args.hostnames))
        out = []
        for m in self.machine_list:
            if args.system_ids and m.system_id not in args.system_ids:
                continue
            if args.hostnames and m.hostname not in args.hostnames:
                continue
            out.append(m)
        return out

    def allocate_machine(self, args: AllocateMachineArgs) -> tuple[Machine, ConstraintMatches]:
        self._enter("allocate_machine", args.hostname)
        for i, m in enumerate(self.machine_list):
            if m.system_id in self.allocated:
                continue
            if args.hostname and m.hostname != args.hostname:
                continue
            self.allocated.add(m.system_id)
            allocated = replace(m, status_name="Allocated")
            self.machine_list[i] = allocated
            matches = ConstraintMatches(
                interfaces={"default": [iface.id for iface in m.interfaces]},
            )
            return allocated, matches
        raise RemoteError(f"no available machine matching {args.hostname!r}", status=409)

    def release_machines(self, args: ReleaseMachinesArgs) -> None:
        self._enter("release_machines", ",".join(args.system_ids))
        missing = [sid for sid in args.system_ids if sid not in self.allocated]
        if missing:
            raise RemoteError(f"machines not allocated: {', '.join(missing)}", status=409)
        for sid in args.system_ids:
            self.allocated.discard(sid)
            i = self._machine_index(sid)
            self.machine_list[i] = replace(self.machine_list[i], status_name="Ready")

    def start_machine(self, machine: Machine, args: StartArgs) -> None:
        self._enter("start_machine", machine.hostname)
        i = self._machine_index(machine.system_id)
        self.machine_list[i] = replace(
            self.machine_list[i],
            status_name="Deploying",
            distro_series=args.distro_series or self.machine_list[i].distro_series,
        )

    def machine_devices(self, machine: Machine, args: DevicesArgs) -> list[Device]:
        self._enter("machine_devices", machine.hostname)
        return [d for d in self._filter_devices(args) if d.parent == machine.system_id]

    def create_machine_device(self, machine: Machine, args: CreateMachineDeviceArgs) -> Device:
        self._enter("create_machine_device", args.hostname)
        links: list[Link] = []
        if args.subnet is not None:
            links.append(Link(id=next(self._ids), mode="static", subnet=args.subnet))
        system_id = self._next_id("dev")
        device = Device(
            system_id=system_id,
            hostname=args.hostname or system_id,
            parent=machine.system_id,
            interfaces=[
                Interface(
                    id=next(self._ids),
                    name=args.interface_name,
                    mac_address=args.mac_address,
                    links=links,
                )
            ],
        )
        self.device_list.append(device)
        return device

    # Devices

    def _filter_devices(self, args: DevicesArgs) -> list[Device]:
        out = []
        for d in self.device_list:
            if args.hostnames and d.hostname not in args.hostnames:
                continue
            if args.system_ids and d.system_id not in args.system_ids:
                continue
            out.append(d)
        return out

    def devices(self, args: DevicesArgs) -> list[Device]:
        self._enter("devices", ",".join(args.hostnames + args.system_ids))
        return self._filter_devices(args)

    def create_device(self, args: CreateDeviceArgs) -> Device:
        self._enter("create_device", args.hostname)
        parent = args.parent
        for m in self.machine_list:
            if parent and m.hostname == parent:
                parent = m.system_id
        system_id = self._next_id("dev")
        interfaces = [
            Interface(id=next(self._ids), name=f"eth{i}", mac_address=mac)
            for i, mac in enumerate(args.mac_addresses)
        ]
        device = Device(
            system_id=system_id,
            hostname=args.hostname or system_id,
            parent=parent,
            interfaces=interfaces,
        )
        self.device_list.append(device)
        return device

    def delete_device(self, device: Device) -> None:
        self._enter("delete_device", device.hostname)
        before = len(self.device_list)
        self.device_list = [d for d in self.device_list if d.system_id != device.system_id]
        if len(self.device_list) == before:
            raise RemoteError(f"device {device.system_id!r} does not exist", status=404)

    def device_interfaces(self, device: Device) -> list[Interface]:
        self._enter("device_interfaces", device.hostname)
        return list(device.interfaces)

    def interface_links(self, interface: Interface) -> list[Link]:
        self._enter("interface_links", interface.name)
        return list(interface.links)

    def unlink_subnet(self, interface: Interface, subnet: Subnet) -> None:
        self._enter("unlink_subnet", subnet.name)
        for link in interface.links:
            if link.subnet is not None and link.subnet.id == subnet.id:
                interface.links.remove(link)
                return
        raise NotFound("link", subnet.name, f"on interface {interface.name}")

    # Files

    def files(self, prefix: str) -> list[File]:
        self._enter("files", prefix)
        return [
            File(filename=name, anon_resource_uri=f"/files/?op=get_by_key&key={name}")
            for name in sorted(self.file_store)
            if name.startswith(prefix)
        ]

    def get_file(self, filename: str) -> File:
        self._enter("get_file", filename)
        if filename not in self.file_store:
            raise NotFound("file", filename)
        return File(filename=filename, content=self.file_store[filename])

    def add_file(self, args: AddFileArgs) -> None:
        args.validate()
        self._enter("add_file", args.filename)
        if args.reader is None:
            self.file_store[args.filename] = bytes(args.content or b"")
            return
        data = args.reader.read(args.length) if args.length else b""
        if len(data) != args.length:
            raise RemoteError(f"short upload: got {len(data)} of {args.length} bytes")
        self.file_store[args.filename] = data

    def read_file(self, file: File) -> bytes:
        self._enter("read_file", file.filename)
        if file.filename not in self.file_store:
            raise NotFound("file", file.filename)
        return self.file_store[file.filename]

    def delete_file(self, file: File) -> None:
        self._enter("delete_file", file.filename)
        if self.file_store.pop(file.filename, None) is None:
            raise NotFound("file", file.filename)

    def snapshot(self) -> dict[str, Any]:
        """Compact view of mutable state, handy in test assertions."""
        return {
            "machines": {m.hostname: m.status_name for m in self.machine_list},
            "devices": [d.hostname for d in self.device_list],
            "files": sorted(self.file_store),
        }
