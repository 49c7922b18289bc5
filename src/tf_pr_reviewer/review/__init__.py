"""
Review Orchestration

This module sequences one pull request review: preference lookup,
file retrieval into a scoped workspace, linting, summarising and
commenting, plus the background queue that runs reviews off the
request thread.
"""

from .workspace import ReviewWorkspace, WorkspaceError
from .orchestrator import ReviewOrchestrator
from .tasks import ReviewTaskQueue

__all__ = ['ReviewWorkspace', 'WorkspaceError', 'ReviewOrchestrator', 'ReviewTaskQueue']
