# skyline_fem/config.py
"""
Assembly configuration and defaults.
"""

import logging
from dataclasses import dataclass


CONSTRAINED_LOAD_POLICIES = ('reject', 'ignore')


@dataclass
class AssemblyConfig:
    """Configuration for the assembly pipeline."""

    # What to do with a concentrated load applied to a constrained DOF:
    #   'reject' -> ModelError
    #   'ignore' -> dropped with a warning (reactions are not modeled)
    constrained_load_policy: str = 'reject'

    # Logging
    log_level: str = 'INFO'
    log_layout: bool = False  # log column heights / diagonal addresses

    def __post_init__(self):
        if self.constrained_load_policy not in CONSTRAINED_LOAD_POLICIES:
            raise ValueError(
                f"constrained_load_policy must be one of {CONSTRAINED_LOAD_POLICIES}, "
                f"got {self.constrained_load_policy!r}"
            )


# Default config instance
CONFIG = AssemblyConfig()


def configure_logging(level: str = CONFIG.log_level) -> None:
    """Attach a stream handler to the package logger."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(levelname)s %(name)s: %(message)s',
    )
