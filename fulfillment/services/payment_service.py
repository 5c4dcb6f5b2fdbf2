"""Paystack payment verification."""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from fulfillment.config import get_settings
from fulfillment.errors import (
    PaymentAmountMismatch,
    PaymentNotSuccessful,
    PaymentProviderUnavailable,
)
from fulfillment.models.order import PaymentProof, PaymentStatus
from fulfillment.utils.helpers import mask_reference
from fulfillment.utils.money import from_minor_units

logger = logging.getLogger(__name__)
settings = get_settings()

# Largest difference in kobo accepted between paid and expected amounts
AMOUNT_TOLERANCE_MINOR = 5


class PaystackVerifier:
    """Confirms that a payment reference was paid in full.

    Every call queries the provider afresh; nothing is cached between calls.
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        """Initialize the verifier.

        Args:
            transport: Optional httpx transport, used to stub the provider.
        """
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=settings.paystack_base_url,
            timeout=settings.payment_timeout_seconds,
            transport=self.transport,
            headers={"Authorization": f"Bearer {settings.paystack_secret_key}"},
        )

    async def verify(self, reference: str, expected_minor_units: int) -> PaymentProof:
        """Verify a payment reference against the expected amount in kobo.

        Raises:
            PaymentNotSuccessful: the provider says the charge did not complete.
            PaymentAmountMismatch: paid amount differs by more than the tolerance.
            PaymentProviderUnavailable: the payment could not be confirmed.
        """
        masked = mask_reference(reference)

        if not settings.payment_verification_enabled:
            logger.warning(
                "[SECURITY WARNING] Payment verification is DISABLED; accepting %s unverified",
                masked,
                extra={"payment_reference": masked, "environment": settings.environment},
            )
            return PaymentProof(
                reference=reference,
                verifiedAmount=expected_minor_units,
                status=PaymentStatus.UNVERIFIED,
            )

        if not settings.paystack_secret_key:
            logger.error("Paystack secret key is not configured; refusing to verify %s", masked)
            raise PaymentProviderUnavailable(reference, "provider credentials missing")

        data = await self._lookup(reference)

        provider_status = data.get("status")
        if provider_status != "success":
            logger.warning("Payment %s not successful: status=%s", masked, provider_status)
            raise PaymentNotSuccessful(reference, provider_status)

        if data.get("reference") != reference:
            logger.error(
                "Paystack answered for a different reference than %s",
                masked,
                extra={"payment_reference": masked},
            )
            raise PaymentNotSuccessful(reference, "reference mismatch")

        try:
            paid = int(data["amount"])
        except (KeyError, TypeError, ValueError):
            logger.error("Paystack returned no usable amount for %s", masked)
            raise PaymentProviderUnavailable(reference, "malformed provider response")

        if abs(paid - expected_minor_units) > AMOUNT_TOLERANCE_MINOR:
            logger.warning(
                "Payment amount mismatch for %s: paid NGN %s, expected NGN %s",
                masked,
                from_minor_units(paid),
                from_minor_units(expected_minor_units),
                extra={"payment_reference": masked, "paid": paid, "expected": expected_minor_units},
            )
            raise PaymentAmountMismatch(reference, expected_minor_units, paid)

        logger.info("Payment %s verified for %d kobo", masked, paid)
        return PaymentProof(reference=reference, verifiedAmount=paid, status=PaymentStatus.SUCCESS)

    async def _lookup(self, reference: str) -> dict:
        """Fetch the provider's transaction record for a reference."""
        masked = mask_reference(reference)
        try:
            async with self._client() as client:
                response = await client.get(f"/transaction/verify/{quote(reference, safe='')}")
        except httpx.TimeoutException:
            logger.error("Paystack verification timed out for %s", masked)
            raise PaymentProviderUnavailable(reference, "timeout")
        except httpx.HTTPError as e:
            logger.error("Paystack verification error for %s: %s", masked, e)
            raise PaymentProviderUnavailable(reference, "transport error")

        if response.status_code >= 500 or response.status_code in (401, 403):
            logger.error("Paystack returned %d for %s", response.status_code, masked)
            raise PaymentProviderUnavailable(reference, f"provider status {response.status_code}")

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            logger.error("Paystack returned an unreadable body for %s", masked)
            raise PaymentProviderUnavailable(reference, "malformed provider response")

        if response.status_code >= 400 or not body.get("status"):
            # Unknown reference or rejected lookup
            logger.warning(
                "Paystack rejected lookup for %s: %s", masked, body.get("message", response.status_code)
            )
            raise PaymentNotSuccessful(reference, body.get("message"))

        data = body.get("data")
        if not isinstance(data, dict):
            raise PaymentProviderUnavailable(reference, "malformed provider response")
        return data


# Global payment verifier instance
payment_verifier = PaystackVerifier()
