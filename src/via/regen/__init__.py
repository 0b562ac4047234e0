"""
Regeneration coordinator.

Runs the whole pipeline for one batch and commits the generated-output
root all at once.
"""

from .changes import OutputChangeSet, detect_output_changes
from .config import IR_FILENAME, RegenerationConfig
from .runner import CheckResult, RegenerationResult, RegenerationRunner, regenerate

__all__ = [
    "CheckResult",
    "IR_FILENAME",
    "OutputChangeSet",
    "RegenerationConfig",
    "RegenerationResult",
    "RegenerationRunner",
    "detect_output_changes",
    "regenerate",
]
