"""
Transient progress notifications emitted while a package installs.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum


class Stage(str, Enum):
    """Install stages reported to progress observers."""

    DOWNLOADING = "Downloading"
    VERIFYING = "Verifying"
    EXTRACTING = "Extracting"
    DONE = "Done"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self in (Stage.DONE, Stage.FAILED)


@dataclass(frozen=True)
class ProgressEvent:
    """One progress update for a package. Percent resets to 0 at each stage."""

    package_id: str
    percent: float
    stage: Stage
    message: str | None = None

    def __post_init__(self):
        object.__setattr__(self, "percent", max(0.0, min(100.0, float(self.percent))))


ProgressSink = Callable[[ProgressEvent], None]
