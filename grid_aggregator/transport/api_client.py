"""
EnergyGrid API client.

Fetches real-time device data with signed requests. Every failure is
raised as one of the TransportException categories.
"""
import logging
from typing import Any, List, Optional, Sequence

import httpx
from pydantic import ValidationError

from ..config import AggregatorSettings, get_settings
from ..models import DeviceRecord
from ..exceptions import (
    NoResponseError,
    RemoteRejectedError,
    RequestConstructionError,
)
from ..security.signature import SignatureGenerator

logger = logging.getLogger(__name__)


class EnergyGridClient:
    """
    Client for the EnergyGrid device query API.

    Responsibilities:
    - Sign each request with a fresh timestamp
    - Post batches of serial numbers
    - Categorize failures (rejected, no response, local)
    """

    def __init__(
        self,
        settings: Optional[AggregatorSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        signer: Optional[SignatureGenerator] = None,
    ):
        """
        Initialize the EnergyGrid client.

        Args:
            settings: Aggregator settings.
            transport: Optional httpx transport (used by tests).
            signer: Optional signature generator.
        """
        self.settings = settings or get_settings()
        api = self.settings.api

        self.endpoint = api.endpoint
        self.signer = signer or SignatureGenerator(api.endpoint, api.token)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def connect(self) -> None:
        """Initialize HTTP client."""
        if self._client:
            return

        api = self.settings.api
        self._client = httpx.AsyncClient(
            base_url=api.base_url,
            timeout=api.timeout,
            transport=self._transport,
        )
        logger.info(f"EnergyGrid client initialized: {api.url}")

    async def disconnect(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("EnergyGrid client disconnected")

    async def __aenter__(self) -> "EnergyGridClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.disconnect()

    async def fetch_device_data(
        self,
        serial_numbers: Sequence[str],
    ) -> List[DeviceRecord]:
        """
        Fetch device data for a batch of serial numbers.

        Args:
            serial_numbers: Serial numbers to query.

        Returns:
            Device records returned by the API.

        Raises:
            RemoteRejectedError: The API answered with an error or bad body.
            NoResponseError: No response arrived in time.
            RequestConstructionError: The request could not be sent.
        """
        if not self._client:
            raise RequestConstructionError("client is not connected")

        signed = self.signer.generate()

        try:
            response = await self._client.post(
                self.endpoint,
                json={"sn_list": list(serial_numbers)},
                headers=signed.headers(),
            )
        except httpx.TimeoutException as e:
            raise NoResponseError(f"request timed out ({e.__class__.__name__})") from e
        except (httpx.NetworkError, httpx.RemoteProtocolError) as e:
            raise NoResponseError(str(e) or e.__class__.__name__) from e
        except (httpx.HTTPError, TypeError, ValueError) as e:
            raise RequestConstructionError(str(e) or e.__class__.__name__) from e

        if response.is_error:
            raise RemoteRejectedError(response.status_code, self._error_message(response))

        return self._parse_records(response)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.reason_phrase or "Unknown error"

        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return "Unknown error"

    @staticmethod
    def _parse_records(response: httpx.Response) -> List[DeviceRecord]:
        try:
            body = response.json()
        except ValueError as e:
            raise RemoteRejectedError(response.status_code, "Response is not valid JSON") from e

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, list):
            raise RemoteRejectedError(response.status_code, "Response has no data list")

        try:
            return [DeviceRecord.model_validate(item) for item in data]
        except ValidationError as e:
            raise RemoteRejectedError(
                response.status_code, f"Malformed device record: {e.error_count()} errors"
            ) from e
