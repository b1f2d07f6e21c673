from grantvest.core.logging import configure_logging
from grantvest.services.vesting_engine import VestingEngine, calculate, enrich

__version__ = "0.1.0"

__all__ = [
    "VestingEngine",
    "calculate",
    "configure_logging",
    "enrich",
]
