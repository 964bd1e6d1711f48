"""
Security module for request signing.
"""
from .signature import SignatureGenerator, SignedRequest, compute_signature

__all__ = [
    "SignatureGenerator",
    "SignedRequest",
    "compute_signature",
]
