"""
Data Models

Terraform PR 리뷰 파이프라인의 핵심 데이터 모델들
"""

from .preferences import PreferenceRecord, PreferencesRequest
from .pull_request import PullRequestContext, ChangedFile
from .review import LintResult, ReviewState, ReviewResult

__all__ = [
    "PreferenceRecord",
    "PreferencesRequest",
    "PullRequestContext",
    "ChangedFile",
    "LintResult",
    "ReviewState",
    "ReviewResult",
]
