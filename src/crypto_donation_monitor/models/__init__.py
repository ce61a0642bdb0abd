# -*- coding: utf-8 -*-
"""Domain models."""

from crypto_donation_monitor.models.donation import (
    BankMetadata,
    CardMetadata,
    CryptoMetadata,
    Donation,
    DonationMetadata,
    DonationSource,
    DonationStatus,
)
from crypto_donation_monitor.models.monitoring import MonitoringStatus
from crypto_donation_monitor.models.payment import CryptoPaymentIntent, SubmissionResult
from crypto_donation_monitor.models.price import PriceCacheEntry
from crypto_donation_monitor.models.processed_transaction import ProcessedTransaction
from crypto_donation_monitor.models.transaction import ChainTransaction, TransactionStatus
from crypto_donation_monitor.models.verification import VerificationResult
from crypto_donation_monitor.models.wallet import (
    PortfolioView,
    TokenBalance,
    WalletAddress,
    WalletSnapshot,
)

__all__ = [
    "BankMetadata",
    "CardMetadata",
    "ChainTransaction",
    "CryptoMetadata",
    "CryptoPaymentIntent",
    "Donation",
    "DonationMetadata",
    "DonationSource",
    "DonationStatus",
    "MonitoringStatus",
    "PortfolioView",
    "PriceCacheEntry",
    "ProcessedTransaction",
    "SubmissionResult",
    "TokenBalance",
    "TransactionStatus",
    "VerificationResult",
    "WalletAddress",
    "WalletSnapshot",
]
