"""
Request signing for the EnergyGrid API.

Every request carries a signature and the millisecond timestamp it
was computed with:

    signature = MD5(endpoint + token + timestamp)
"""
import hashlib
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class SignedRequest:
    """A signature/timestamp pair valid for exactly one request."""
    signature: str
    timestamp: str

    def headers(self) -> Dict[str, str]:
        """Request headers carrying the signature."""
        return {
            "Content-Type": CONTENT_TYPE,
            "signature": self.signature,
            "timestamp": self.timestamp,
        }


def compute_signature(endpoint: str, token: str, timestamp: str) -> str:
    """
    Compute the MD5 signature for a request.

    Args:
        endpoint: API endpoint path (e.g. /device/real/query).
        token: Secret token.
        timestamp: Millisecond timestamp as a decimal string.

    Returns:
        Hex-encoded MD5 digest.
    """
    payload = f"{endpoint}{token}{timestamp}"
    return hashlib.md5(payload.encode("utf-8")).hexdigest()


class SignatureGenerator:
    """
    Produces a fresh SignedRequest for each API call.

    Timestamps issued by one generator strictly increase, so a pair is
    never reused even when two calls land in the same millisecond.
    """

    def __init__(
        self,
        endpoint: str,
        token: str,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the signature generator.

        Args:
            endpoint: API endpoint path included in the signature.
            token: Secret token.
            clock: Wall clock returning seconds since the epoch.
        """
        self.endpoint = endpoint
        self._token = token
        self._clock = clock
        self._last_timestamp: Optional[int] = None

    def _next_timestamp(self) -> int:
        timestamp = int(self._clock() * 1000)
        if self._last_timestamp is not None and timestamp <= self._last_timestamp:
            # A pair must never repeat; bursts run at most a few ms ahead of the wall clock
            timestamp = self._last_timestamp + 1
        self._last_timestamp = timestamp
        return timestamp

    def generate(self) -> SignedRequest:
        """
        Sign a request with the current timestamp.

        Returns:
            SignedRequest holding the signature and its timestamp.
        """
        timestamp = str(self._next_timestamp())
        signature = compute_signature(self.endpoint, self._token, timestamp)
        return SignedRequest(signature=signature, timestamp=timestamp)
