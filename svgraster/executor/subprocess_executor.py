"""Default executor driving svgexport, ImageMagick, optipng and an SVG to VectorDrawable tool."""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Any, Callable, Sequence

from ..config import PostProcessor, ToolsConfig
from ..errors import ExecutorError, ToolUnavailableError
from ..workorder.models import PostProcessStep, Rasterization, VectorConversion
from . import pillow_ops
from .imagemagick import convert_command

logger = logging.getLogger(__name__)

CommandRunner = Callable[[Sequence[str]], subprocess.CompletedProcess[str]]

SVGEXPORT_OPS_FILENAME = "svgexport_ops.json"


class SubprocessExecutor:
    """Run work orders through external command-line tools.

    Args:
        tools: Executables and backend choices.
        ops_dir: Directory receiving the svgexport batch file.
        runner: Callable executing a command; defaults to :func:`subprocess.run`.
    """

    def __init__(
        self,
        tools: ToolsConfig,
        ops_dir: Path,
        *,
        runner: CommandRunner | None = None,
    ) -> None:
        self._tools = tools
        self._ops_dir = Path(ops_dir)
        self._runner = runner or _run_subprocess

    @property
    def ops_file(self) -> Path:
        return self._ops_dir / SVGEXPORT_OPS_FILENAME

    def rasterize(self, rasterizations: Sequence[Rasterization]) -> None:
        if not rasterizations:
            return
        for rasterization in rasterizations:
            for output in rasterization.outputs:
                output.path.parent.mkdir(parents=True, exist_ok=True)

        self._ops_dir.mkdir(parents=True, exist_ok=True)
        payload = svgexport_payload(rasterizations)
        self.ops_file.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        self._run([self._tools.svgexport, _abs(self.ops_file)], tool="svgexport")

    def post_process(self, steps: Sequence[PostProcessStep]) -> None:
        use_pillow = self._tools.post_processor is PostProcessor.PILLOW
        for step in steps:
            if use_pillow:
                pillow_ops.apply_operation(step.path, step.operation)
            else:
                command = convert_command(self._tools.convert, step.path, step.operation)
                self._run(command, tool="ImageMagick")

    def convert_to_vector(self, conversions: Sequence[VectorConversion]) -> None:
        for conversion in conversions:
            conversion.output.parent.mkdir(parents=True, exist_ok=True)
            command = [
                part.format(source=_abs(conversion.source), output=_abs(conversion.output))
                for part in self._tools.vector_command
            ]
            try:
                self._run(command, tool="vector drawable conversion")
            except ExecutorError:
                conversion.output.unlink(missing_ok=True)
                raise

    def optimize(self, paths: Sequence[Path]) -> None:
        if not self._tools.optimize:
            return
        for path in paths:
            self._run([self._tools.optipng, "-quiet", _abs(path)], tool="optipng")

    def _run(self, command: Sequence[str], *, tool: str) -> subprocess.CompletedProcess[str]:
        logger.debug("Running %s", " ".join(command))
        try:
            result = self._runner(command)
        except FileNotFoundError as exc:
            raise ToolUnavailableError(f"{tool} is not installed or not available in PATH ({command[0]}).") from exc

        if result.returncode != 0:
            output = (result.stderr or result.stdout or "").strip()
            message = f"{tool} failed with exit code {result.returncode}"
            if output:
                message += f": {output}"
            raise ExecutorError(message)
        return result


def svgexport_payload(rasterizations: Sequence[Rasterization]) -> list[dict[str, Any]]:
    """Describe rasterizations in svgexport's batch format."""
    payload: list[dict[str, Any]] = []
    for rasterization in rasterizations:
        outputs: list[list[str]] = []
        for output in rasterization.outputs:
            entry = [_abs(output.path)]
            if output.size is not None:
                entry.append(output.size)
            outputs.append(entry)
        payload.append({"input": [_abs(rasterization.source)], "output": outputs})
    return payload


def _abs(path: Path) -> str:
    return str(Path(path).resolve())


def _run_subprocess(command: Sequence[str]) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        command,
        check=False,
        capture_output=True,
        text=True,
    )
