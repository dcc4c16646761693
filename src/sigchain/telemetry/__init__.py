"""Telemetry and observability for SigChain chains.

Provides:
- ProgressCallback: Live per-node counters (tqdm)
"""

from .progress import ProgressCallback

__all__ = [
    "ProgressCallback",
]
