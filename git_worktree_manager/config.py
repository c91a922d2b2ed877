"""Configuration handling for git-worktree-manager"""

from dataclasses import dataclass
from typing import Optional

DEFAULT_INITIAL_COMMIT_MESSAGE = "Initial commit created by Git Worktree Manager"

# Windows MAX_PATH
DEFAULT_MAX_PATH_LENGTH = 260

MAIN_DETECTION_FILESYSTEM = "filesystem"
MAIN_DETECTION_LISTING = "listing"


@dataclass
class Config:
    """Configuration for the worktree engine with validation."""

    # Git invocation
    git_executable: str = "git"
    command_timeout: Optional[float] = None  # None = wait for the subprocess indefinitely

    # Worker pool
    max_workers: Optional[int] = None  # None = auto-detect

    # Validation
    max_path_length: int = DEFAULT_MAX_PATH_LENGTH
    case_insensitive_paths: Optional[bool] = None  # None = detect from the platform

    # Which source decides the main worktree: on-disk metadata or listing order
    main_detection: str = MAIN_DETECTION_FILESYSTEM

    initial_commit_message: str = DEFAULT_INITIAL_COMMIT_MESSAGE

    # Logging
    verbose: bool = False
    debug: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_git_executable()
        self._validate_command_timeout()
        self._validate_max_workers()
        self._validate_max_path_length()
        self._validate_main_detection()
        self._validate_initial_commit_message()

    def _validate_git_executable(self):
        """Validate git_executable is not empty."""
        if not self.git_executable or not self.git_executable.strip():
            raise ValueError("git_executable cannot be empty")
        self.git_executable = self.git_executable.strip()

    def _validate_command_timeout(self):
        """Validate command_timeout is positive when set."""
        if self.command_timeout is not None and self.command_timeout <= 0:
            raise ValueError(f"command_timeout must be positive, got {self.command_timeout}")

    def _validate_max_workers(self):
        """Validate max_workers is positive when set."""
        if self.max_workers is not None and self.max_workers <= 0:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}")

    def _validate_max_path_length(self):
        """Validate max_path_length is positive."""
        if self.max_path_length <= 0:
            raise ValueError(f"max_path_length must be positive, got {self.max_path_length}")

    def _validate_main_detection(self):
        """Validate main_detection is one of allowed values."""
        allowed = [MAIN_DETECTION_FILESYSTEM, MAIN_DETECTION_LISTING]
        if self.main_detection not in allowed:
            raise ValueError(f"main_detection must be one of {allowed}, got '{self.main_detection}'")

    def _validate_initial_commit_message(self):
        """Validate initial_commit_message is not blank."""
        if not self.initial_commit_message or not self.initial_commit_message.strip():
            raise ValueError("initial_commit_message cannot be empty")

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "git_executable": self.git_executable,
            "command_timeout": self.command_timeout,
            "max_workers": self.max_workers,
            "max_path_length": self.max_path_length,
            "case_insensitive_paths": self.case_insensitive_paths,
            "main_detection": self.main_detection,
            "initial_commit_message": self.initial_commit_message,
            "verbose": self.verbose,
            "debug": self.debug,
        }

    def get(self, key: str, default=None):
        """Get config value by key, mirroring dict access."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""
        known_fields = {
            "git_executable",
            "command_timeout",
            "max_workers",
            "max_path_length",
            "case_insensitive_paths",
            "main_detection",
            "initial_commit_message",
            "verbose",
            "debug",
        }

        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)

    @classmethod
    def coerce(cls, config) -> "Config":
        """Accept a Config, a plain dict or None and return a Config."""
        if config is None:
            return cls()
        if isinstance(config, dict):
            return cls.from_dict(config)
        return config
