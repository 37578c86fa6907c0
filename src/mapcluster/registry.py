"""Registry for pluggable components in mapcluster."""

from mapcluster.utils.logging import MapclusterLogger

from .interfaces import PositionStrategy

logger = MapclusterLogger.get_logger(__name__)

# Registry for cluster position strategies
POSITION_STRATEGY_REGISTRY: dict[str, type[PositionStrategy]] = {}

__all__ = [
    "register_position_strategy",
    "get_position_strategy",
    # Expose registry for advanced users who need direct access
    "POSITION_STRATEGY_REGISTRY",
]


def register_position_strategy(name: str):
    """Decorator to register a cluster position strategy."""

    def decorator(cls: type[PositionStrategy]):
        if name in POSITION_STRATEGY_REGISTRY:
            raise ValueError(f"Position strategy '{name}' is already registered")
        POSITION_STRATEGY_REGISTRY[name] = cls
        return cls

    return decorator


def get_position_strategy(name: str) -> PositionStrategy:
    """Instantiate the strategy registered under ``name``."""
    # Built-in strategies register themselves on import
    import mapcluster.clustering.positions  # noqa: F401

    strategy_class = POSITION_STRATEGY_REGISTRY.get(name)
    if strategy_class is None:
        logger.error(f"❌ Unknown cluster position strategy: {name}")
        raise ValueError(f"Unknown cluster position strategy: {name}")
    return strategy_class()
