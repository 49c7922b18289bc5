"""
Lint Runner

Invokes the external linter (tflint by default) as a subprocess against
a directory and captures its machine-readable output. A non-zero exit
status means the linter found issues and is returned as data; only a
linter that could not run at all is an error.
"""

import shlex
import time
import logging
import subprocess
from typing import List

from ..models.review import LintResult


logger = logging.getLogger(__name__)


class LintExecutionError(Exception):
    """Linter could not be executed"""


class LinterNotFoundError(LintExecutionError):
    """Linter executable is not installed or not on PATH"""


class LintTimeoutError(LintExecutionError):
    """Linter did not finish within the configured timeout"""


class LintRunner:
    """
    Runs a linter command over a directory.

    The command is a template in which ``{path}`` is replaced by the
    directory to lint, e.g. ``tflint --recursive --chdir {path} --format json``.
    """

    def __init__(self, command: str = "tflint --recursive --chdir {path} --format json", timeout: int = 120):
        """
        Initialize lint runner.

        Args:
            command: Command template containing a ``{path}`` placeholder
            timeout: Seconds before the linter process is killed
        """
        self.command = command
        self.timeout = timeout

    def build_command(self, directory: str) -> List[str]:
        """Build the argv for linting directory."""
        return [part.replace('{path}', directory) for part in shlex.split(self.command)]

    def lint(self, directory: str) -> LintResult:
        """
        Lint every module under directory, nested ones included.

        Args:
            directory: Directory holding the files to lint

        Returns:
            LintResult with the tool's exit code and captured output

        Raises:
            LinterNotFoundError: When the linter executable is missing
            LintTimeoutError: When the linter exceeds the timeout
        """
        argv = self.build_command(directory)
        logger.info(f"Running linter: {' '.join(argv)}")

        start_time = time.monotonic()
        try:
            completed = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            logger.error(f"Linter executable not found: {argv[0]}")
            raise LinterNotFoundError(f"Linter executable not found: {argv[0]}") from e
        except subprocess.TimeoutExpired as e:
            logger.error(f"Linter timed out after {self.timeout}s")
            raise LintTimeoutError(f"Linter timed out after {self.timeout}s") from e
        except OSError as e:
            logger.error(f"Linter could not be started: {e}")
            raise LintExecutionError(f"Linter could not be started: {e}") from e

        result = LintResult(
            command=argv,
            exit_code=completed.returncode,
            stdout=completed.stdout or '',
            stderr=completed.stderr or '',
            duration=time.monotonic() - start_time,
        )

        if result.exit_code != 0:
            logger.info(f"Linter exited with status {result.exit_code} (issues={result.issue_count})")
        else:
            logger.info(f"Linter finished cleanly in {result.duration:.2f}s")
        return result
