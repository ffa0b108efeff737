"""Subprocess-based completion client for CLI agents."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import tempfile
from pathlib import Path

from daily_report_extraction.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 120.0
_STDERR_PREVIEW_CHARS = 500


class CliCompletionClient:
    """Run a command template per prompt and return its stdout.

    The template must include ``{prompt}``; ``{model}`` and ``{prompt_file}``
    are optional placeholders. Values are shell-quoted before rendering.
    """

    def __init__(
        self,
        *,
        command_template: str,
        model: str = "",
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        stripped = command_template.strip()
        if not stripped:
            raise ValueError("CLI command template is empty.")
        if "{prompt}" not in stripped:
            raise ValueError("CLI command template must include {prompt}.")
        self.command_template = stripped
        self.model = model
        self.timeout_seconds = timeout_seconds

    def close(self) -> None:
        """Nothing to release; every call runs its own process."""

    def complete(self, prompt: str, *, system_prompt: str | None = None) -> str:
        full_prompt = f"{system_prompt}\n\n{prompt}" if system_prompt else prompt
        with tempfile.TemporaryDirectory(prefix="daily-report-llm-") as workdir:
            prompt_file = Path(workdir) / "prompt.txt"
            prompt_file.write_text(full_prompt, "utf-8")
            argv = _build_run_args(
                command_template=self.command_template,
                model=self.model,
                prompt=full_prompt,
                prompt_file=prompt_file,
            )
            env = os.environ.copy()
            env["DAILY_REPORT_LLM_MODEL"] = self.model
            try:
                completed = subprocess.run(  # noqa: S603
                    argv,
                    env=env,
                    capture_output=True,
                    text=True,
                    timeout=self.timeout_seconds,
                    check=False,
                )
            except FileNotFoundError as error:
                raise TransportError(
                    f"CLI model command not found: {argv[0]}",
                    transient=False,
                ) from error
            except subprocess.TimeoutExpired as error:
                raise TransportError(
                    f"CLI model command timed out after {self.timeout_seconds}s",
                    transient=True,
                ) from error
            except OSError as error:
                raise TransportError(
                    f"CLI model command failed to start: {error}",
                    transient=True,
                ) from error

        if completed.returncode != 0:
            stderr_preview = (completed.stderr or "").strip()[:_STDERR_PREVIEW_CHARS]
            logger.warning(
                "CLI model command exited with %s: %s",
                completed.returncode,
                stderr_preview,
            )
            raise TransportError(
                f"CLI model command exited with code {completed.returncode}",
                transient=False,
            )
        return completed.stdout or ""


def _build_run_args(
    *,
    command_template: str,
    model: str,
    prompt: str,
    prompt_file: Path,
) -> list[str]:
    try:
        rendered = command_template.format(
            model=shlex.quote(model),
            prompt=shlex.quote(prompt),
            prompt_file=shlex.quote(str(prompt_file)),
        )
    except (KeyError, IndexError) as error:
        raise TransportError(
            f"Unsupported command template placeholder: {error}",
            transient=False,
        ) from error

    argv = shlex.split(rendered)
    if not argv:
        raise TransportError("CLI command template rendered empty command.", transient=False)
    return argv
