"""Multi-phase continuity analysis and the master context it produces."""

from scriptcontinuity.analysis.chunking import chunk_script
from scriptcontinuity.analysis.context import MasterContext
from scriptcontinuity.analysis.context_builder import build_master_context
from scriptcontinuity.analysis.orchestrator import ContinuityAnalyzer

__all__ = [
    "ContinuityAnalyzer",
    "MasterContext",
    "build_master_context",
    "chunk_script",
]
