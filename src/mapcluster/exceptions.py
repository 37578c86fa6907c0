"""Exceptions raised inside mapcluster."""


class MapclusterError(Exception):
    """Base class for mapcluster errors."""


class PassCancelled(MapclusterError):
    """A recompute pass noticed it was superseded and abandoned its work.

    Raised at cooperative checkpoints before any shared state is committed, so
    catching it means the pass had no observable effect.
    """
