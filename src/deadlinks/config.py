"""
Run configuration for the dead link checker.
"""
from __future__ import annotations

from dataclasses import dataclass

DEFAULT_THRESHOLD = 2
DEFAULT_PROGRESS_INTERVAL_S = 5.0


@dataclass(slots=True)
class CheckerConfig:
    """Settings fixed at construction time for one crawl."""
    threshold: int = DEFAULT_THRESHOLD
    timeout_s: float = 15.0
    user_agent: str = "DeadLinkChecker/1.0"
    progress_interval: float = DEFAULT_PROGRESS_INTERVAL_S
    max_workers: int = 1
    verbose: bool = False

    def validate(self) -> None:
        """Raise ValueError if any setting is out of range."""
        if self.threshold < 0:
            raise ValueError(f"threshold must be >= 0, got {self.threshold}")
        if self.timeout_s <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout_s}")
        if self.progress_interval <= 0:
            raise ValueError(f"progress interval must be positive, got {self.progress_interval}")
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
