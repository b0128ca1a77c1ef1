"""Client for RANDOM.ORG's signed integer generator.

The signed API returns, alongside the numbers, the exact ``random`` object
that was generated and a signature over it. Both are stored with the draw so
anyone can verify the result at RANDOM.ORG.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import requests

from club_lottery.errors import ProviderUnavailableError

logger = logging.getLogger(__name__)

VERIFY_SIGNATURE_URL = "https://api.random.org/signatures/form"


@dataclass(frozen=True)
class SignedRandomNumbers:
    numbers: list[int]
    signature: str
    random_payload: dict[str, Any]
    serial_number: int | None = None


def _build_http_session() -> requests.Session:
    # No retry adapter: a failed generation aborts the draw and the caller
    # decides whether to try again.
    session = requests.Session()
    session.headers.update({"Content-Type": "application/json", "User-Agent": "club-lottery/1.0"})
    return session


class RandomOrgClient:
    """Obtain unique integers from a certified third-party source."""

    def __init__(
        self,
        api_key: str,
        *,
        url: str = "https://api.random.org/json-rpc/4/invoke",
        timeout_seconds: float = 15.0,
        lottery_name: str = "Club Lottery",
        http: requests.Session | None = None,
    ) -> None:
        self._api_key = api_key
        self._url = url
        self._timeout_seconds = timeout_seconds
        self._lottery_name = lottery_name
        self._http = http or _build_http_session()

    def generate_unique_integers(
        self,
        count: int,
        minimum: int,
        maximum: int,
        user_data: dict[str, Any] | None = None,
    ) -> SignedRandomNumbers:
        """Draw ``count`` integers from ``[minimum, maximum]`` without replacement.

        Returns the numbers sorted ascending together with the signature.

        Raises:
            ProviderUnavailableError: the service is not configured, cannot be
                reached, or returned anything other than a valid draw.
        """

        if not self._api_key:
            raise ProviderUnavailableError(message="Randomness provider is not configured")
        if count < 1 or maximum - minimum + 1 < count:
            raise ValueError("Range too small for the requested count")

        payload = {
            "jsonrpc": "2.0",
            "method": "generateSignedIntegers",
            "params": {
                "apiKey": self._api_key,
                "n": int(count),
                "min": int(minimum),
                "max": int(maximum),
                "replacement": False,
                "base": 10,
                "userData": {
                    "lottery": self._lottery_name,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    **(user_data or {}),
                },
            },
            "id": 1,
        }

        logger.info("Requesting %d signed integers in [%d, %d] from RANDOM.ORG", count, minimum, maximum)
        try:
            resp = self._http.post(self._url, json=payload, timeout=self._timeout_seconds)
            resp.raise_for_status()
            body = resp.json()
        except requests.RequestException as exc:
            logger.warning("RANDOM.ORG request failed: %s", exc)
            raise ProviderUnavailableError(details={"reason": str(exc)}) from exc
        except ValueError as exc:
            raise ProviderUnavailableError(message="Malformed response from randomness provider") from exc

        return self._parse(body, count=count, minimum=minimum, maximum=maximum)

    @staticmethod
    def _parse(body: Any, *, count: int, minimum: int, maximum: int) -> SignedRandomNumbers:
        if not isinstance(body, dict):
            raise ProviderUnavailableError(message="Malformed response from randomness provider")

        if body.get("error"):
            error = body["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise ProviderUnavailableError(
                message="Randomness provider returned an error",
                details={"reason": message},
            )

        result = body.get("result")
        random_obj = result.get("random") if isinstance(result, dict) else None
        data = random_obj.get("data") if isinstance(random_obj, dict) else None
        signature = result.get("signature") if isinstance(result, dict) else None

        if not isinstance(data, list) or not isinstance(signature, str) or not signature:
            raise ProviderUnavailableError(message="Malformed response from randomness provider")
        if any(isinstance(n, bool) or not isinstance(n, int) for n in data):
            raise ProviderUnavailableError(message="Randomness provider returned non-integer data")

        numbers = sorted(int(n) for n in data)
        if len(numbers) != count or len(set(numbers)) != count:
            raise ProviderUnavailableError(
                message="Randomness provider returned the wrong number of unique values",
                details={"data": data},
            )
        if any(n < minimum or n > maximum for n in numbers):
            raise ProviderUnavailableError(
                message="Randomness provider returned values out of range",
                details={"data": data},
            )

        serial = random_obj.get("serialNumber")
        return SignedRandomNumbers(
            numbers=numbers,
            signature=signature,
            random_payload=dict(random_obj),
            serial_number=int(serial) if isinstance(serial, int) else None,
        )
