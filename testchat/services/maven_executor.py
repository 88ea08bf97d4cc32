"""Run single TestNG methods through Maven as the execution coordinator's executor."""
import logging
import os
import shlex
import subprocess
from pathlib import Path
from typing import List, Optional

from ..core.coordinator import CommandResult, ExecutionOptions

logger = logging.getLogger(__name__)

DEFAULT_MAVEN_COMMAND = "mvn test -Dtest="
EXIT_TIMEOUT = 124
EXIT_NOT_RUNNABLE = 127


def build_test_command(
    maven_command: str,
    class_name: str,
    method_name: str,
    headless: bool = True,
    extra_flags: str = "",
) -> str:
    """Render the shell command for one TestNG method.

    The selector is appended directly to ``maven_command``, so the configured
    prefix is expected to end with ``-Dtest=``.
    """
    headless_flag = "-Dheadless=true" if headless else "-Dheadless=false"
    command = f"{maven_command or DEFAULT_MAVEN_COMMAND}{class_name}#{method_name} {headless_flag} {extra_flags or ''}"
    return command.strip()


class MavenExecutor:
    """Run single test methods through Maven (or any configured command prefix)."""

    def __init__(self, maven_command: str = DEFAULT_MAVEN_COMMAND, timeout: Optional[int] = 300) -> None:
        self.maven_command = maven_command
        self.timeout = timeout

    def _prepare_output_dir(self, options: ExecutionOptions, cwd: Optional[str]) -> None:
        if not options.output_directory:
            return
        output_dir = Path(options.output_directory)
        if not output_dir.is_absolute() and cwd:
            output_dir = Path(cwd) / output_dir
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error("[MavenExecutor] Error creating output directory %s: %s", output_dir, exc)

    def run(self, class_name: str, method_name: str, options: ExecutionOptions) -> CommandResult:
        command = build_test_command(
            self.maven_command,
            class_name,
            method_name,
            headless=options.headless,
            extra_flags=options.extra_flags,
        )
        cwd = options.working_directory or None
        self._prepare_output_dir(options, cwd)

        args: List[str] = shlex.split(command, posix=os.name != "nt")
        logger.info("[MavenExecutor] Executing test command: %s (cwd=%s)", command, cwd or os.getcwd())
        try:
            result = subprocess.run(
                args,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                cwd=cwd,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as exc:
            logger.error("[MavenExecutor] Command timed out after %ss: %s", self.timeout, command)
            stdout = exc.stdout if isinstance(exc.stdout, str) else ""
            return CommandResult(
                exit_code=EXIT_TIMEOUT,
                stdout=stdout,
                stderr=f"Command timed out after {self.timeout} seconds",
                command=command,
            )
        except OSError as exc:
            logger.error("[MavenExecutor] Unable to start command %s: %s", command, exc)
            return CommandResult(exit_code=EXIT_NOT_RUNNABLE, stderr=str(exc), command=command)

        if result.returncode == 0:
            logger.info("[MavenExecutor] Command executed successfully: %s", command)
        else:
            logger.warning("[MavenExecutor] Command failed with exit code %s: %s", result.returncode, command)
        return CommandResult(
            exit_code=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            command=command,
        )
