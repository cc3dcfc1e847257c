"""
Workflow package.

This makes the workflow folder an explicit package so both Python and mypy
resolve modules consistently.
"""

from maas_exerciser.workflow.dispatcher import ActionDispatcher, default_workflows
from maas_exerciser.workflow.reporter import DiagnosticReport, DiagnosticReporter
from maas_exerciser.workflow.resolver import PreconditionResolver

__all__ = [
    "ActionDispatcher",
    "DiagnosticReport",
    "DiagnosticReporter",
    "PreconditionResolver",
    "default_workflows",
]
