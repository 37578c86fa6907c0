"""
Locking and recompute scheduling.
"""

from .locks import ReadWriteLock
from .scheduler import RecomputeScheduler

__all__ = ['ReadWriteLock', 'RecomputeScheduler']
