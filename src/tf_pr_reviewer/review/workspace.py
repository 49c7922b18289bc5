"""
Review Workspace

Process-local temporary directory holding the files of one pull
request review. Removed recursively on every exit path.
"""

import os
import time
import shutil
import logging
import tempfile
from pathlib import Path
from typing import Optional


logger = logging.getLogger(__name__)


class WorkspaceError(Exception):
    """Workspace could not be created or written"""


class ReviewWorkspace:
    """
    Exclusively-owned temporary directory scoped to one review.

    Use as a context manager::

        with ReviewWorkspace(root, pr_number=42) as workspace:
            workspace.write_file("modules/vpc/main.tf", content)
            lint(workspace.path)
    """

    def __init__(self, root: Optional[str] = None, pr_number: int = 0):
        self.root = root or tempfile.gettempdir()
        self.pr_number = pr_number
        self.path: Optional[str] = None

    def __enter__(self) -> "ReviewWorkspace":
        self.create()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()
        return False

    def create(self) -> str:
        """Create a uniquely-named directory under the workspace root."""
        os.makedirs(self.root, exist_ok=True)
        prefix = f"pr-{self.pr_number}-{int(time.time() * 1000)}-"
        self.path = tempfile.mkdtemp(prefix=prefix, dir=self.root)
        logger.info(f"Created review workspace {self.path}")
        return self.path

    def write_file(self, relative_path: str, content: str) -> str:
        """
        Write content at relative_path inside the workspace.

        Args:
            relative_path: Repository-relative file path
            content: File content

        Returns:
            Absolute path of the written file

        Raises:
            WorkspaceError: When the path escapes the workspace
        """
        if self.path is None:
            raise WorkspaceError("Workspace has not been created")

        base = Path(self.path).resolve()
        target = (base / relative_path).resolve()
        if target == base or base not in target.parents:
            raise WorkspaceError(f"Refusing to write outside the workspace: {relative_path}")

        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, 'w', encoding='utf-8', newline='') as f:
            f.write(content)

        logger.debug(f"Wrote {relative_path} ({len(content)} chars)")
        return str(target)

    def cleanup(self) -> None:
        """Remove the workspace recursively; missing directories are ignored."""
        if self.path is None:
            return
        shutil.rmtree(self.path, ignore_errors=True)
        if os.path.exists(self.path):
            logger.error(f"Review workspace {self.path} could not be fully removed")
        else:
            logger.info(f"Removed review workspace {self.path}")
