"""Crypto payment flow: intents and transaction hash submission."""

from crypto_donation_monitor.services.payments.crypto_payment_service import (
    CryptoPaymentService,
    build_payment_uri,
)

__all__ = ["CryptoPaymentService", "build_payment_uri"]
