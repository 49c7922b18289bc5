"""
Configuration Management

시스템 설정 관리
"""

import os
import tempfile
import yaml
from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any, List
from pathlib import Path
import logging


DEFAULT_LINT_COMMAND = "tflint --recursive --chdir {path} --format json"
DEFAULT_TRACKED_EXTENSIONS = [".tf"]


def _split_extensions(value: str) -> List[str]:
    return [ext.strip() for ext in value.split(",") if ext.strip()]


@dataclass
class GitHubConfig:
    """GitHub API 설정"""
    app_id: Optional[str] = None
    token: Optional[str] = None
    private_key_path: Optional[str] = None  # GitHub App 인증용, 현재 파이프라인에서는 미사용
    api_base_url: str = "https://api.github.com"
    timeout_seconds: int = 30


@dataclass
class WebhookConfig:
    """웹훅 검증 설정"""
    secret: str = ""


@dataclass
class LintConfig:
    """린터 실행 설정"""
    command: str = DEFAULT_LINT_COMMAND
    timeout_seconds: int = 120
    tracked_extensions: List[str] = field(default_factory=lambda: list(DEFAULT_TRACKED_EXTENSIONS))


@dataclass
class LLMConfig:
    """LLM 엔드포인트 설정"""
    endpoint: str = "http://localhost:11434/api/generate"
    model: str = "llama2"
    timeout_seconds: int = 300


@dataclass
class StorageConfig:
    """저장소 및 작업 디렉토리 설정"""
    preferences_path: str = "user-preferences.json"
    workspace_root: str = field(default_factory=tempfile.gettempdir)


@dataclass
class ServerConfig:
    """HTTP 서버 및 백그라운드 처리 설정"""
    host: str = "0.0.0.0"
    port: int = 8000
    process_async: bool = True
    max_workers: int = 4
    fetch_workers: int = 1


@dataclass
class LoggingConfig:
    """로깅 설정"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


@dataclass
class AppConfig:
    """전체 애플리케이션 설정"""
    github: GitHubConfig = field(default_factory=GitHubConfig)
    webhook: WebhookConfig = field(default_factory=WebhookConfig)
    lint: LintConfig = field(default_factory=LintConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    debug: bool = False

    @classmethod
    def from_env(cls) -> "AppConfig":
        """환경 변수에서 설정 로드"""
        return cls(
            github=GitHubConfig(
                app_id=os.getenv("APP_ID"),
                token=os.getenv("GITHUB_TOKEN"),
                private_key_path=os.getenv("PRIVATE_KEY_PATH"),
                api_base_url=os.getenv("GITHUB_API_URL", "https://api.github.com"),
                timeout_seconds=int(os.getenv("GITHUB_TIMEOUT", "30")),
            ),
            webhook=WebhookConfig(
                secret=os.getenv("WEBHOOK_SECRET", ""),
            ),
            lint=LintConfig(
                command=os.getenv("TFLINT_COMMAND", DEFAULT_LINT_COMMAND),
                timeout_seconds=int(os.getenv("LINT_TIMEOUT", "120")),
                tracked_extensions=_split_extensions(
                    os.getenv("TRACKED_EXTENSIONS", ",".join(DEFAULT_TRACKED_EXTENSIONS))
                ),
            ),
            llm=LLMConfig(
                endpoint=os.getenv("OLLAMA_URL", "http://localhost:11434/api/generate"),
                model=os.getenv("LLM_MODEL", "llama2"),
                timeout_seconds=int(os.getenv("LLM_TIMEOUT", "300")),
            ),
            storage=StorageConfig(
                preferences_path=os.getenv("PREFERENCES_PATH", "user-preferences.json"),
                workspace_root=os.getenv("WORKSPACE_ROOT", tempfile.gettempdir()),
            ),
            server=ServerConfig(
                host=os.getenv("SERVER_HOST", "0.0.0.0"),
                port=int(os.getenv("SERVER_PORT", "8000")),
                process_async=os.getenv("PROCESS_ASYNC", "true").lower() == "true",
                max_workers=int(os.getenv("MAX_WORKERS", "4")),
                fetch_workers=int(os.getenv("FETCH_WORKERS", "1")),
            ),
            logging=LoggingConfig(
                level=os.getenv("LOG_LEVEL", "INFO"),
                format=os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
                file_path=os.getenv("LOG_FILE"),
                max_file_size=int(os.getenv("LOG_MAX_SIZE", str(10 * 1024 * 1024))),
                backup_count=int(os.getenv("LOG_BACKUP_COUNT", "5")),
            ),
            debug=os.getenv("DEBUG", "false").lower() == "true",
        )

    @classmethod
    def from_yaml(cls, config_path: str) -> "AppConfig":
        """YAML 파일에서 설정 로드"""
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_file, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f) or {}

        return cls(
            github=GitHubConfig(**config_data.get('github', {})),
            webhook=WebhookConfig(**config_data.get('webhook', {})),
            lint=LintConfig(**config_data.get('lint', {})),
            llm=LLMConfig(**config_data.get('llm', {})),
            storage=StorageConfig(**config_data.get('storage', {})),
            server=ServerConfig(**config_data.get('server', {})),
            logging=LoggingConfig(**config_data.get('logging', {})),
            debug=config_data.get('debug', False),
        )

    def validate(self) -> None:
        """설정 유효성 검사"""
        errors = []

        # GitHub 토큰 필수 확인
        if not self.github.token:
            errors.append("GitHub token is required")

        if "{path}" not in self.lint.command:
            errors.append("Lint command must contain a {path} placeholder")

        for ext in self.lint.tracked_extensions:
            if not ext.startswith('.'):
                errors.append(f"Tracked extension must start with '.': {ext}")
        if not self.lint.tracked_extensions:
            errors.append("At least one tracked extension is required")

        # 타임아웃 검증
        for name, value in (
            ("github.timeout_seconds", self.github.timeout_seconds),
            ("lint.timeout_seconds", self.lint.timeout_seconds),
            ("llm.timeout_seconds", self.llm.timeout_seconds),
        ):
            if value <= 0:
                errors.append(f"{name} must be positive")

        if self.server.max_workers <= 0 or self.server.fetch_workers <= 0:
            errors.append("Worker counts must be positive")

        # 로그 레벨 검증
        valid_log_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if self.logging.level.upper() not in valid_log_levels:
            errors.append(f"Invalid log level: {self.logging.level}")

        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

    def to_dict(self) -> Dict[str, Any]:
        """설정을 딕셔너리로 변환"""
        data = asdict(self)
        # 보안상 토큰과 시크릿은 제외
        data['github'].pop('token', None)
        data['webhook'].pop('secret', None)
        return data


class ConfigManager:
    """설정 관리자"""

    def __init__(self, config: Optional[AppConfig] = None):
        self._config = config or AppConfig.from_env()
        self._config.validate()
        self._setup_logging()

    @property
    def config(self) -> AppConfig:
        """현재 설정 반환"""
        return self._config

    def _setup_logging(self) -> None:
        """로깅 설정"""
        logging.basicConfig(
            level=getattr(logging, self._config.logging.level.upper()),
            format=self._config.logging.format,
        )

        # 파일 로깅이 설정된 경우 로테이션 설정
        if self._config.logging.file_path:
            from logging.handlers import RotatingFileHandler

            handler = RotatingFileHandler(
                self._config.logging.file_path,
                maxBytes=self._config.logging.max_file_size,
                backupCount=self._config.logging.backup_count,
            )
            handler.setFormatter(logging.Formatter(self._config.logging.format))

            # 루트 로거에 핸들러 추가
            root_logger = logging.getLogger()
            root_logger.addHandler(handler)


# 전역 설정 관리자 인스턴스 (최초 접근 시 생성)
_config_manager: Optional[ConfigManager] = None


def get_config() -> AppConfig:
    """현재 설정 반환"""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager.config
