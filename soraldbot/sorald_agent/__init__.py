"""
Sorald repair agent
Applies Sorald fixes rule by rule on a target commit and prepares one pull request per rule.
"""

from .callback import PatchCallback
from .sorald_executor import SoraldAdapter
from .sorald_orchestrator import SoraldOrchestrator

__all__ = [
    "PatchCallback",
    "SoraldAdapter",
    "SoraldOrchestrator",
]
