"""
Preference Data Models

저장소별 리뷰 우선순위 모델들
"""

from typing import Optional
from pydantic import BaseModel, field_validator


class PreferenceRecord(BaseModel):
    """저장소 하나의 리뷰 우선순위"""
    priorities: str = ""

    @field_validator('priorities', mode='before')
    @classmethod
    def validate_priorities(cls, v):
        if v is None:
            return ""
        if not isinstance(v, str):
            raise ValueError('priorities must be a string')
        return v


class PreferencesRequest(BaseModel):
    """API 요청용 우선순위 저장 모델"""
    repo: Optional[str] = None
    priorities: str = ""

    @field_validator('repo', mode='before')
    @classmethod
    def normalize_repo(cls, v):
        if v is None:
            return None
        if not isinstance(v, str):
            raise ValueError('repo must be a string')
        return v.strip() or None

    @field_validator('priorities', mode='before')
    @classmethod
    def normalize_priorities(cls, v):
        if v is None:
            return ""
        if not isinstance(v, str):
            raise ValueError('priorities must be a string')
        return v
