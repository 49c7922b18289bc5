"""
Pull Request Data Models

웹훅 페이로드와 GitHub API 응답에서 추출한 PR 모델들
"""

from dataclasses import dataclass
from typing import Dict, Iterable


class WebhookPayloadError(ValueError):
    """Verified webhook payload is missing required pull request fields."""


@dataclass(frozen=True)
class PullRequestContext:
    """리뷰 대상 PR 정보 (생성 후 불변)"""
    owner: str
    repo: str
    pr_number: int
    base_sha: str
    head_sha: str

    def __post_init__(self):
        """데이터 검증"""
        if not self.owner or not self.repo:
            raise ValueError("Owner and repo must be non-empty")
        if self.pr_number <= 0:
            raise ValueError("PR number must be positive")

    @property
    def repository_key(self) -> str:
        """우선순위 저장소 키 ("owner/name")"""
        return f"{self.owner}/{self.repo}"

    @classmethod
    def from_payload(cls, payload: Dict) -> "PullRequestContext":
        """pull_request 웹훅 페이로드에서 생성"""
        try:
            repository = payload['repository']
            pull_request = payload['pull_request']
            return cls(
                owner=repository['owner']['login'],
                repo=repository['name'],
                pr_number=int(pull_request['number']),
                base_sha=pull_request['base']['sha'],
                head_sha=pull_request['head']['sha'],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise WebhookPayloadError(f"Malformed pull_request payload: {e}") from e


@dataclass(frozen=True)
class ChangedFile:
    """PR에서 변경된 파일"""
    filename: str
    status: str

    @property
    def is_removed(self) -> bool:
        """head 커밋에 존재하지 않는 파일인지 확인"""
        return self.status == 'removed'

    def matches(self, extensions: Iterable[str]) -> bool:
        """추적 대상 확장자인지 확인"""
        return any(self.filename.endswith(ext) for ext in extensions)

    @classmethod
    def from_api(cls, file_data: Dict) -> "ChangedFile":
        """GitHub "list PR files" 항목에서 생성"""
        return cls(
            filename=file_data['filename'],
            status=file_data.get('status', 'modified'),
        )
