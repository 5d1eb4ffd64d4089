"""Finalize orchestration."""
from .finalizer import ConversionOutcome, FinalizeOrchestrator, FinalizeResult

__all__ = ["ConversionOutcome", "FinalizeOrchestrator", "FinalizeResult"]
