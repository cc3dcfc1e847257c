"""
File store workflows.

The read_direct flag selects the strategy, never the content:
add-file reads the whole source into memory, or streams it with its size as
the declared length.
read-file fetches by name, or lists by prefix and picks the exact match.

A source file that cannot be stat-ed, opened or read is a ValidationError.
"""

from __future__ import annotations

import logging
from pathlib import Path

from maas_exerciser.client.base import ResourceClient
from maas_exerciser.core.errors import ValidationError, trace
from maas_exerciser.core.types import AddFileArgs
from maas_exerciser.workflow.base import Arity, WorkflowContext, WorkflowResult
from maas_exerciser.workflow.resolver import PreconditionResolver

_logger = logging.getLogger(__name__)


def _inaccessible(path: Path, exc: OSError) -> ValidationError:
    reason = exc.strerror or str(exc)
    return ValidationError(f"source file {str(path)!r} is inaccessible: {reason}")


class ListFilesWorkflow:
    name = "list-files"
    arity = Arity(maximum=1, usage="[prefix]")

    def execute(self, args: list[str], client: ResourceClient, ctx: WorkflowContext) -> WorkflowResult:
        prefix = args[0] if args else ""
        with trace(f"listing files with prefix {prefix!r}"):
            files = client.files(prefix)
        for i, f in enumerate(files):
            ctx.emit(f"{i}: {f.filename} ({f.anon_resource_uri})")
        return WorkflowResult(
            action=self.name,
            ok=True,
            summary=f"{len(files)} files",
            details={"filenames": [f.filename for f in files]},
        )


class AddFileWorkflow:
    name = "add-file"
    arity = Arity.exactly(2, "<filename> <file path>")

    def execute(self, args: list[str], client: ResourceClient, ctx: WorkflowContext) -> WorkflowResult:
        filename, source = args[0], Path(args[1])

        if ctx.config.read_direct:
            _logger.info("reading content first")
            try:
                content = source.read_bytes()
            except OSError as exc:
                raise _inaccessible(source, exc) from exc
            with trace(f"adding file {filename!r} from {len(content)} buffered bytes"):
                client.add_file(AddFileArgs(filename=filename, content=content))
            length = len(content)
        else:
            _logger.info("opening file and providing reader")
            try:
                length = source.stat().st_size
                handle = source.open("rb")
            except OSError as exc:
                raise _inaccessible(source, exc) from exc
            with handle, trace(f"adding file {filename!r} streaming {length} bytes"):
                client.add_file(AddFileArgs(filename=filename, reader=handle, length=length))

        ctx.emit("file added successfully")
        return WorkflowResult(
            action=self.name,
            ok=True,
            summary=f"added {filename}",
            details={"length": length, "streamed": not ctx.config.read_direct},
        )


class ReadFileWorkflow:
    name = "read-file"
    arity = Arity.exactly(1, "<filename>")

    def execute(self, args: list[str], client: ResourceClient, ctx: WorkflowContext) -> WorkflowResult:
        filename = args[0]
        if ctx.config.read_direct:
            _logger.info("get file directly")
            with trace(f"fetching file {filename!r}"):
                file = client.get_file(filename)
        else:
            with trace(f"listing files with prefix {filename!r}"):
                candidates = client.files(filename)
            with trace(f"selecting {filename!r} from {len(candidates)} prefix matches"):
                file = PreconditionResolver.resolve_file_by_exact_name(candidates, filename)

        with trace(f"reading file {filename!r}"):
            content = client.read_file(file)
        ctx.emit(content.decode("utf-8", errors="replace"))
        return WorkflowResult(
            action=self.name,
            ok=True,
            summary=f"read {len(content)} bytes from {filename}",
            details={"length": len(content)},
        )


class DeleteFileWorkflow:
    name = "delete-file"
    arity = Arity.exactly(1, "<filename>")

    def execute(self, args: list[str], client: ResourceClient, ctx: WorkflowContext) -> WorkflowResult:
        filename = args[0]
        with trace(f"fetching file {filename!r}"):
            file = client.get_file(filename)
        with trace(f"deleting file {filename!r}"):
            client.delete_file(file)
        ctx.emit(f"File {filename!r} deleted.")
        return WorkflowResult(action=self.name, ok=True, summary=f"deleted {filename}")
