"""Configuration management for workflow-guide.

Assumptions:
- Config is loaded from environment variables or local files (never committed)
- Default values are safe and work for local development
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass
class GuideConfig:
    """Main configuration for the workflow guide."""

    # Base paths
    home_dir: Path = field(default_factory=lambda: Path.cwd() / ".workflow-guide")
    data_dir: Path = field(default=None)  # type: ignore
    runs_dir: Path = field(default=None)  # type: ignore

    # Execution defaults
    default_agent: str = "general"
    default_initial_role: str | None = None
    persist_executions: bool = True
    max_rounds: int = 20

    # Optional LLM advisor
    use_advisor: bool = False

    # Logging
    log_level: str = "INFO"
    verbose: bool = False

    def __post_init__(self) -> None:
        """Initialize derived paths and load environment overrides."""
        self._load_env_overrides()

        self.home_dir = Path(self.home_dir)
        if self.data_dir is None:
            self.data_dir = self.home_dir / "data"
        if self.runs_dir is None:
            self.runs_dir = self.home_dir / "runs"
        self.data_dir = Path(self.data_dir)
        self.runs_dir = Path(self.runs_dir)

    def _load_env_overrides(self) -> None:
        """Load configuration overrides from environment variables."""
        env_mappings: dict[str, tuple[str, type]] = {
            "WORKFLOW_GUIDE_HOME": ("home_dir", Path),
            "WORKFLOW_GUIDE_DATA_DIR": ("data_dir", Path),
            "WORKFLOW_GUIDE_RUNS_DIR": ("runs_dir", Path),
            "WORKFLOW_GUIDE_DEFAULT_AGENT": ("default_agent", str),
            "WORKFLOW_GUIDE_INITIAL_ROLE": ("default_initial_role", str),
            "WORKFLOW_GUIDE_PERSIST": ("persist_executions", bool),
            "WORKFLOW_GUIDE_MAX_ROUNDS": ("max_rounds", int),
            "WORKFLOW_GUIDE_USE_ADVISOR": ("use_advisor", bool),
            "WORKFLOW_GUIDE_LOG_LEVEL": ("log_level", str),
            "WORKFLOW_GUIDE_VERBOSE": ("verbose", bool),
        }

        for env_var, (attr, attr_type) in env_mappings.items():
            value = os.environ.get(env_var)
            if value is not None:
                if attr_type == bool:
                    setattr(self, attr, value.lower() in ("true", "1", "yes"))
                else:
                    setattr(self, attr, attr_type(value))

    def ensure_dirs(self) -> None:
        """Ensure required directories exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.runs_dir.mkdir(parents=True, exist_ok=True)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary for serialization."""
        return {
            "home_dir": str(self.home_dir),
            "data_dir": str(self.data_dir),
            "runs_dir": str(self.runs_dir),
            "default_agent": self.default_agent,
            "default_initial_role": self.default_initial_role,
            "persist_executions": self.persist_executions,
            "max_rounds": self.max_rounds,
            "use_advisor": self.use_advisor,
            "log_level": self.log_level,
            "verbose": self.verbose,
        }


# Global config instance (lazy loaded)
_config: GuideConfig | None = None


def get_config() -> GuideConfig:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = GuideConfig()
    return _config


def reset_config() -> None:
    """Reset config (useful for testing)."""
    global _config
    _config = None
