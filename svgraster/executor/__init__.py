"""Executors turning work orders into files."""

from .base import Executor
from .subprocess_executor import CommandRunner, SubprocessExecutor, svgexport_payload

__all__ = [
    "CommandRunner",
    "Executor",
    "SubprocessExecutor",
    "svgexport_payload",
]
