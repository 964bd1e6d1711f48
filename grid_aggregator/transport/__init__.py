"""
Transport module for the EnergyGrid API.
"""
from .api_client import EnergyGridClient

__all__ = [
    "EnergyGridClient",
]
