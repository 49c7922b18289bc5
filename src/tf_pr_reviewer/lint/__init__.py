"""
Lint Runner

Runs the external Terraform linter over a review workspace.
"""

from .runner import LintRunner, LintExecutionError, LinterNotFoundError, LintTimeoutError

__all__ = ['LintRunner', 'LintExecutionError', 'LinterNotFoundError', 'LintTimeoutError']
