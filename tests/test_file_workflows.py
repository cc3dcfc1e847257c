from __future__ import annotations

import io
from pathlib import Path

import pytest

from maas_exerciser.client.memory import InMemoryResourceClient
from maas_exerciser.config import ExerciserConfig
from maas_exerciser.core.errors import NotFound, RemoteError, ValidationError
from maas_exerciser.workflow.base import WorkflowContext
from maas_exerciser.workflow.files import (
    AddFileWorkflow,
    DeleteFileWorkflow,
    ListFilesWorkflow,
    ReadFileWorkflow,
)


def make_client() -> InMemoryResourceClient:
    return InMemoryResourceClient(
        file_store={
            "cloud": b"cloud-config",
            "cloud-init.cfg": b"#cloud-config\npackages: []\n",
            "tools.tgz": b"\x1f\x8b",
        }
    )


def make_ctx(read_direct: bool = False) -> WorkflowContext:
    return WorkflowContext(config=ExerciserConfig(read_direct=read_direct), out=io.StringIO())


def test_list_files_filters_by_prefix():
    client = make_client()
    ctx = make_ctx()

    result = ListFilesWorkflow().execute(["cloud"], client, ctx)

    assert result.details["filenames"] == ["cloud", "cloud-init.cfg"]
    lines = ctx.out.getvalue().splitlines()
    assert lines[0].startswith("0: cloud (")
    assert lines[1].startswith("1: cloud-init.cfg (")


def test_list_files_without_prefix_lists_everything():
    client = make_client()

    result = ListFilesWorkflow().execute([], client, make_ctx())

    assert len(result.details["filenames"]) == 3
    assert client.calls == [("files", "")]


def test_add_file_read_direct_with_empty_source_still_uploads(tmp_path: Path):
    source = tmp_path / "empty.bin"
    source.write_bytes(b"")
    client = make_client()
    ctx = make_ctx(read_direct=True)

    result = AddFileWorkflow().execute(["empty", str(source)], client, ctx)

    assert client.calls == [("add_file", "empty")]
    assert client.file_store["empty"] == b""
    assert result.details == {"length": 0, "streamed": False}
    assert "file added successfully" in ctx.out.getvalue()


def test_add_file_streams_source_with_declared_length(tmp_path: Path):
    payload = b"x" * 100_000
    source = tmp_path / "big.bin"
    source.write_bytes(payload)
    client = make_client()

    result = AddFileWorkflow().execute(["big", str(source)], client, make_ctx())

    assert client.file_store["big"] == payload
    assert result.details == {"length": len(payload), "streamed": True}


@pytest.mark.parametrize("read_direct", [True, False])
def test_add_file_with_inaccessible_source_is_validation_error(tmp_path: Path, read_direct: bool):
    client = make_client()

    with pytest.raises(ValidationError) as info:
        AddFileWorkflow().execute(["x", str(tmp_path / "missing")], client, make_ctx(read_direct))

    assert "inaccessible" in str(info.value)
    assert isinstance(info.value.__cause__, FileNotFoundError)
    assert client.calls == []


def test_add_file_streamed_source_that_is_a_directory_is_validation_error(tmp_path: Path):
    client = make_client()

    with pytest.raises(ValidationError):
        AddFileWorkflow().execute(["x", str(tmp_path)], client, make_ctx())
    assert client.calls == []


def test_read_file_direct_fetches_by_name():
    client = make_client()
    ctx = make_ctx(read_direct=True)

    result = ReadFileWorkflow().execute(["cloud"], client, ctx)

    assert client.operations() == ["get_file", "read_file"]
    assert ctx.out.getvalue() == "cloud-config\n"
    assert result.details["length"] == len(b"cloud-config")


def test_read_file_by_prefix_picks_exact_match():
    client = make_client()
    ctx = make_ctx()

    ReadFileWorkflow().execute(["cloud"], client, ctx)

    assert client.calls == [("files", "cloud"), ("read_file", "cloud")]
    assert ctx.out.getvalue() == "cloud-config\n"


def test_read_file_by_prefix_without_exact_match_is_not_found():
    client = make_client()

    with pytest.raises(NotFound) as info:
        ReadFileWorkflow().execute(["cloud-init"], client, make_ctx())

    assert info.value.kind == "file"
    assert "read_file" not in client.operations()


def test_delete_file_twice_surfaces_not_found():
    client = make_client()
    ctx = make_ctx()

    DeleteFileWorkflow().execute(["tools.tgz"], client, ctx)
    assert "File 'tools.tgz' deleted." in ctx.out.getvalue()
    assert "tools.tgz" not in client.file_store

    with pytest.raises(NotFound) as info:
        DeleteFileWorkflow().execute(["tools.tgz"], client, make_ctx())

    assert not isinstance(info.value, RemoteError)
    assert client.operations()[-1] == "get_file"
