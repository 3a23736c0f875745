from .base import SimulatedVault, YieldVault

__all__ = ["SimulatedVault", "YieldVault"]
