"""
MAAS 2.0 HTTP resource client.

This is a minimal http client approach with no third party deps.

Design
A narrow HttpTransport does the wire work so tests can swap in a fake one.
MaasHttpClient owns url building, OAuth signing, status handling and payload
decoding.

Status handling
2xx decodes the body.
404 raises NotFound for direct fetches and RemoteError elsewhere.
Anything else raises RemoteError chained to a ServerError carrying the status
and the body the service sent back.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from http.client import HTTPException
from typing import Any, Iterable, Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode, urljoin
from urllib.request import Request, urlopen

from maas_exerciser.client.auth import ApiCredentials, authorization_header, parse_api_key
from maas_exerciser.client.base import ResourceClient
from maas_exerciser.client.codec import (
    decode_constraint_matches,
    decode_device,
    decode_fabric,
    decode_file,
    decode_list,
    decode_machine,
    decode_zone,
)
from maas_exerciser.client.multipart import MultipartBody, buffered_body, streamed_body
from maas_exerciser.core.errors import NotFound, RemoteError, ResponseDecodeError, ValidationError
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

API_VERSION = "2.0"

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HttpResponse:
    status: int
    body: bytes


class ServerError(Exception):
    """Non success status returned by the service."""

    def __init__(self, status: int, body: bytes) -> None:
        text = body.decode("utf-8", errors="replace").strip()
        super().__init__(f"{status}: {text}" if text else str(status))
        self.status = status
        self.body = body


class HttpTransport(Protocol):
    """Simple http transport interface for testability."""

    def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | Iterable[bytes] | None = None,
    ) -> HttpResponse:
        """Send one request and return the response, whatever its status."""


@dataclass
class UrllibTransport(HttpTransport):
    """
    Default transport using urllib.

    HTTP error statuses come back as responses. Anything that keeps a
    response from arriving, a malformed url included, raises RemoteError.
    """

    timeout_seconds: int = 30

    def request(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | Iterable[bytes] | None = None,
    ) -> HttpResponse:
        try:
            req = Request(url, data=body, headers=headers, method=method)
            with urlopen(req, timeout=self.timeout_seconds) as resp:
                return HttpResponse(status=resp.status, body=resp.read())
        except HTTPError as exc:
            with exc:
                return HttpResponse(status=exc.code, body=exc.read())
        except (URLError, OSError, ValueError, HTTPException) as exc:
            raise RemoteError(f"{method} {url} failed: {exc}") from exc


@dataclass
class MaasHttpClient(ResourceClient):
    """
    Resource client for a MAAS 2.0 region controller.

    base_url is the MAAS root, such as http://192.168.100.2/MAAS
    api_key is consumer_key:token_key:token_secret, or empty for anonymous
    """

    base_url: str
    api_key: str = ""
    transport: HttpTransport = field(default_factory=UrllibTransport)

    def __post_init__(self) -> None:
        self._creds: ApiCredentials = parse_api_key(self.api_key)
        self._api_root = self.base_url.rstrip("/") + f"/api/{API_VERSION}/"

    # Wire helpers

    def _url(self, path: str, query: dict[str, Any] | None = None) -> str:
        if path.startswith("/"):
            url = urljoin(self._api_root, path)
        else:
            url = self._api_root + path
        if query:
            url = f"{url}?{urlencode(query, doseq=True)}"
        return url

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if not self._creds.anonymous:
            headers["Authorization"] = authorization_header(self._creds)
        return headers

    def _send(
        self,
        method: str,
        path: str,
        *,
        query: dict[str, Any] | None = None,
        form: dict[str, Any] | None = None,
        multipart: MultipartBody | None = None,
    ) -> HttpResponse:
        url = self._url(path, query)
        headers = self._headers()
        body: bytes | Iterable[bytes] | None = None
        if multipart is not None:
            headers["Content-Type"] = multipart.content_type
            headers["Content-Length"] = str(multipart.length)
            body = multipart.chunks
        elif form is not None:
            body = urlencode(form, doseq=True).encode("utf-8")
            headers["Content-Type"] = "application/x-www-form-urlencoded"
            headers["Content-Length"] = str(len(body))
        elif method in ("POST", "PUT"):
            body = b""
            headers["Content-Length"] = "0"

        _logger.debug("request %s %s", method, url)
        resp = self.transport.request(method, url, headers, body)
        _logger.debug("response %s %s -> %d (%d bytes)", method, url, resp.status, len(resp.body))
        return resp

    def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        resp = self._send(method, path, **kwargs)
        if not 200 <= resp.status < 300:
            raise RemoteError(f"{method} {path} failed", status=resp.status) from ServerError(
                resp.status, resp.body
            )
        if not resp.body:
            return None
        try:
            return json.loads(resp.body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ResponseDecodeError(f"{method} {path} returned invalid json") from exc

    def _fetch(self, kind: str, key: str, path: str) -> Any:
        resp = self._send("GET", path)
        if resp.status == 404:
            raise NotFound(kind, key) from ServerError(resp.status, resp.body)
        if not 200 <= resp.status < 300:
            raise RemoteError(f"GET {path} failed", status=resp.status) from ServerError(
                resp.status, resp.body
            )
        try:
            return json.loads(resp.body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ResponseDecodeError(f"GET {path} returned invalid json") from exc

    @staticmethod
    def _interface_path(interface: Interface) -> str:
        if not interface.resource_uri:
            raise ValidationError(f"interface {interface.name!r} has no resource uri")
        return interface.resource_uri

    # Zones and fabrics

    def zones(self) -> list[Zone]:
        return decode_list(self._call("GET", "zones/"), "zones", decode_zone)

    def fabrics(self) -> list[Fabric]:
        return decode_list(self._call("GET", "fabrics/"), "fabrics", decode_fabric)

    # Machines

    def machines(self, args: MachinesArgs) -> list[Machine]:
        query: dict[str, Any] = {}
        if args.system_ids:
            query["id"] = list(args.system_ids)
        if args.hostnames:
            query["hostname"] = list(args.hostnames)
        payload = self._call("GET", "machines/", query=query)
        return decode_list(payload, "machines", decode_machine)

    def allocate_machine(self, args: AllocateMachineArgs) -> tuple[Machine, ConstraintMatches]:
        form: dict[str, Any] = {}
        if args.hostname:
            form["name"] = args.hostname
        payload = self._call("POST", "machines/", query={"op": "allocate"}, form=form)
        if not isinstance(payload, dict):
            raise ResponseDecodeError("allocate response must be an object")
        matches = decode_constraint_matches(payload.get("constraints_by_type"))
        return decode_machine(payload), matches

    def release_machines(self, args: ReleaseMachinesArgs) -> None:
        form: dict[str, Any] = {"machines": list(args.system_ids)}
        if args.comment:
            form["comment"] = args.comment
        self._call("POST", "machines/", query={"op": "release"}, form=form)

    def start_machine(self, machine: Machine, args: StartArgs) -> None:
        form: dict[str, Any] = {}
        if args.distro_series:
            form["distro_series"] = args.distro_series
        if args.user_data:
            form["user_data"] = args.user_data
        if args.comment:
            form["comment"] = args.comment
        self._call("POST", f"machines/{machine.system_id}/", query={"op": "deploy"}, form=form)

    def machine_devices(self, machine: Machine, args: DevicesArgs) -> list[Device]:
        return [d for d in self.devices(args) if d.parent == machine.system_id]

    def create_machine_device(self, machine: Machine, args: CreateMachineDeviceArgs) -> Device:
        """
        Create the device, rename its interface, then link the subnet.

        A failure after the device exists deletes it again before the error
        propagates.
        """
        device = self.create_device(
            CreateDeviceArgs(
                hostname=args.hostname,
                mac_addresses=[args.mac_address],
                parent=machine.system_id,
            )
        )
        try:
            if len(device.interfaces) != 1:
                raise ResponseDecodeError(
                    f"new device {device.system_id} has {len(device.interfaces)} interfaces, expected 1"
                )
            iface_path = self._interface_path(device.interfaces[0])
            if device.interfaces[0].name != args.interface_name:
                self._call("PUT", iface_path, form={"name": args.interface_name})
            if args.subnet is not None:
                self._call(
                    "POST",
                    iface_path,
                    query={"op": "link_subnet"},
                    form={"mode": "STATIC", "subnet": str(args.subnet.id)},
                )
        except (RemoteError, ValidationError):
            _logger.warning("cleaning up device %s after failed setup", device.system_id)
            self.delete_device(device)
            raise

        payload = self._call("GET", f"devices/{device.system_id}/")
        return decode_device(payload)

    # Devices

    def devices(self, args: DevicesArgs) -> list[Device]:
        query: dict[str, Any] = {}
        if args.hostnames:
            query["hostname"] = list(args.hostnames)
        if args.system_ids:
            query["id"] = list(args.system_ids)
        payload = self._call("GET", "devices/", query=query)
        return decode_list(payload, "devices", decode_device)

    def create_device(self, args: CreateDeviceArgs) -> Device:
        form: dict[str, Any] = {}
        if args.hostname:
            form["hostname"] = args.hostname
        if args.mac_addresses:
            form["mac_addresses"] = list(args.mac_addresses)
        if args.parent:
            form["parent"] = args.parent
        return decode_device(self._call("POST", "devices/", form=form))

    def delete_device(self, device: Device) -> None:
        self._call("DELETE", f"devices/{device.system_id}/")

    def device_interfaces(self, device: Device) -> list[Interface]:
        return list(device.interfaces)

    def interface_links(self, interface: Interface) -> list[Link]:
        return list(interface.links)

    def unlink_subnet(self, interface: Interface, subnet: Subnet) -> None:
        link_id: int | None = None
        for link in interface.links:
            if link.subnet is not None and link.subnet.id == subnet.id:
                link_id = link.id
                break
        if link_id is None:
            raise NotFound("link", subnet.name, f"on interface {interface.name}")
        self._call(
            "POST",
            self._interface_path(interface),
            query={"op": "unlink_subnet"},
            form={"id": str(link_id)},
        )

    # Files

    @staticmethod
    def _file_path(filename: str) -> str:
        return f"files/{quote(filename, safe='')}/"

    def files(self, prefix: str) -> list[File]:
        query = {"prefix": prefix} if prefix else None
        return decode_list(self._call("GET", "files/", query=query), "files", decode_file)

    def get_file(self, filename: str) -> File:
        return decode_file(self._fetch("file", filename, self._file_path(filename)))

    def add_file(self, args: AddFileArgs) -> None:
        args.validate()
        fields = {"filename": args.filename}
        if args.reader is not None:
            body = streamed_body(fields, "file", args.filename, args.reader, args.length)
        else:
            body = buffered_body(fields, "file", args.filename, args.content or b"")
        self._call("POST", "files/", query={"op": "add"}, multipart=body)

    def read_file(self, file: File) -> bytes:
        if file.content is not None:
            return file.content
        fetched = self.get_file(file.filename)
        if fetched.content is None:
            raise ResponseDecodeError(f"file {file.filename!r} returned without content")
        return fetched.content

    def delete_file(self, file: File) -> None:
        self._call("DELETE", self._file_path(file.filename))
