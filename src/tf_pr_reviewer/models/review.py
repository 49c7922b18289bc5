"""
Review Data Models

린트 결과와 리뷰 실행 결과 모델들
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class ReviewState(str, Enum):
    """리뷰 오케스트레이션 상태"""
    IDLE = "idle"
    PREFERENCES_CHECKED = "preferences_checked"
    FILES_LISTED = "files_listed"
    FILES_FETCHED = "files_fetched"
    LINTED = "linted"
    SUMMARIZED = "summarized"
    COMMENTED = "commented"
    CLEANED = "cleaned"
    SKIPPED = "skipped"


@dataclass
class LintResult:
    """린터 실행 결과"""
    command: List[str]
    exit_code: int
    stdout: str
    stderr: str
    duration: float = 0.0

    @property
    def output(self) -> str:
        """요약기에 전달할 출력 (stdout, 없으면 stderr)"""
        if self.stdout:
            return self.stdout
        if self.stderr:
            return self.stderr
        if self.exit_code != 0:
            return f"{' '.join(self.command)} exited with status {self.exit_code}"
        return ""

    @property
    def has_findings(self) -> bool:
        """린터가 이슈를 보고했는지 확인"""
        count = self.issue_count
        if count is not None:
            return count > 0
        return self.exit_code != 0

    @property
    def issue_count(self) -> Optional[int]:
        """JSON 출력의 이슈 개수 (파싱 불가 시 None)"""
        try:
            data = json.loads(self.stdout)
        except ValueError:
            return None
        if isinstance(data, dict) and isinstance(data.get('issues'), list):
            return len(data['issues'])
        return None


@dataclass
class ReviewResult:
    """PR 리뷰 실행 결과"""
    review_id: str
    repository: str
    pr_number: int
    status: str = "pending"  # 'completed', 'skipped', 'failed'
    states: List[ReviewState] = field(default_factory=lambda: [ReviewState.IDLE])
    files_reviewed: List[str] = field(default_factory=list)
    workspace_path: Optional[str] = None
    lint_exit_code: Optional[int] = None
    summary: Optional[str] = None
    comment_posted: bool = False
    error: Optional[str] = None
    processing_time: float = 0.0
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def final_state(self) -> ReviewState:
        """마지막 상태"""
        return self.states[-1]

    def advance(self, state: ReviewState) -> None:
        """상태 전이 기록"""
        self.states.append(state)
