"""Payout gateways

The payout scheduler hands each batch of seller payouts to a gateway for its
payment method. A gateway either accepts the batch (returning the provider's
reference for it) or raises ``ExternalServiceError``; individual items it
rejects up front are reported in ``GatewaySubmission.failures``.

- ``PayPalPayoutGateway`` talks to the PayPal Payouts REST API over
  ``httpx.AsyncClient`` (OAuth2 client-credentials, then one payouts batch).
- ``UnconfiguredPayoutGateway`` stands in when credentials are missing so the
  scheduler can park the batch for manual processing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

import httpx

from promptatrium.core.errors import ExternalServiceError
from promptatrium.server.core.config import PayPalConfig, settings

EMAIL_SUBJECT = "You have a payment from the marketplace"
EMAIL_MESSAGE = "Your earnings have been processed"


@dataclass
class PayoutItem:
    seller_id: str
    receiver: str
    amount_cents: int
    transaction_ids: List[str] = field(default_factory=list)


@dataclass
class GatewaySubmission:
    """Outcome of submitting a batch: provider reference plus per-seller rejections."""

    reference: Optional[str] = None
    failures: Dict[str, str] = field(default_factory=dict)


class PayoutGateway(Protocol):
    """Sends seller payouts for one payment method."""

    method: str
    is_configured: bool

    async def submit(self, batch_number: str, items: List[PayoutItem]) -> GatewaySubmission:
        """
        Submit payouts for a batch.

        Args:
            batch_number: Local batch number, used to build provider-side ids.
            items: One payout per seller.

        Raises:
            ExternalServiceError: the provider rejected the whole batch.
        """
        ...


class UnconfiguredPayoutGateway:
    is_configured = False

    def __init__(self, method: str) -> None:
        self.method = method

    async def submit(self, batch_number: str, items: List[PayoutItem]) -> GatewaySubmission:
        raise ExternalServiceError(self.method, f"{self.method.capitalize()} payouts are not configured")


class PayPalPayoutGateway:
    """PayPal Payouts API client.

    Args:
        config: PayPal credentials and environment; defaults to the app settings.
        client: HTTP client to use, mainly for tests.
    """

    method = "paypal"

    def __init__(self, config: Optional[PayPalConfig] = None, *, client: Optional[httpx.AsyncClient] = None) -> None:
        self._config = config or settings.paypal
        self._http = client or httpx.AsyncClient(timeout=30.0)
        self._logger = logging.getLogger(__name__)

    @property
    def is_configured(self) -> bool:
        return self._config.is_configured

    async def _access_token(self) -> str:
        r = await self._http.post(
            f"{self._config.base_url}/v1/oauth2/token",
            auth=(self._config.client_id or "", self._config.client_secret or ""),
            data={"grant_type": "client_credentials"},
            headers={"Accept": "application/json"},
        )
        r.raise_for_status()
        return r.json()["access_token"]

    @staticmethod
    def build_request_body(batch_number: str, items: List[PayoutItem]) -> Dict[str, Any]:
        return {
            "sender_batch_header": {
                "sender_batch_id": batch_number,
                "email_subject": EMAIL_SUBJECT,
                "email_message": EMAIL_MESSAGE,
                "recipient_type": "EMAIL",
            },
            "items": [
                {
                    "recipient_type": "EMAIL",
                    "amount": {"value": f"{item.amount_cents / 100:.2f}", "currency": "USD"},
                    "receiver": item.receiver,
                    "note": f"Marketplace payout for seller {item.seller_id}",
                    "sender_item_id": f"{batch_number}_{index}",
                }
                for index, item in enumerate(items)
            ],
        }

    async def submit(self, batch_number: str, items: List[PayoutItem]) -> GatewaySubmission:
        """Create one PayPal payouts batch covering every item.

        Returns:
            The submission with PayPal's ``payout_batch_id`` as reference.

        Raises:
            ExternalServiceError: PayPal is not configured, or the API call failed.
        """
        if not self.is_configured:
            raise ExternalServiceError("paypal", "PayPal is not configured")

        try:
            token = await self._access_token()
            self._logger.debug("PayPalPayoutGateway.submit: POST payouts for %s (%d items)", batch_number, len(items))
            r = await self._http.post(
                f"{self._config.base_url}/v1/payments/payouts",
                json=self.build_request_body(batch_number, items),
                headers={"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
            )
            r.raise_for_status()
            payload = r.json()
        except httpx.HTTPStatusError as e:
            raise ExternalServiceError("paypal", f"PayPal API returned {e.response.status_code}") from e
        except httpx.TransportError as e:
            raise ExternalServiceError("paypal", f"PayPal API unreachable: {e}") from e

        reference = (payload.get("batch_header") or {}).get("payout_batch_id")
        if not reference:
            raise ExternalServiceError("paypal", "PayPal response did not include a payout batch id")
        return GatewaySubmission(reference=reference)

    async def aclose(self) -> None:
        await self._http.aclose()


def default_gateways() -> Dict[str, PayoutGateway]:
    """Gateways built from the current settings; Stripe payouts are processed manually."""
    config = settings.paypal
    paypal: PayoutGateway = PayPalPayoutGateway(config) if config.is_configured else UnconfiguredPayoutGateway("paypal")
    return {"paypal": paypal, "stripe": UnconfiguredPayoutGateway("stripe")}
