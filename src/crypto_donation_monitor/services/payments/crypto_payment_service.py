# -*- coding: utf-8 -*-
"""CryptoPaymentService: donor-facing payment intents and tx hash submission."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional
from urllib.parse import urlencode

import structlog
from structlog.contextvars import bound_contextvars

from crypto_donation_monitor.config.networks import (
    CURRENCY_NETWORKS,
    QUOTE_PRECISION,
    Network,
    get_policy,
    parse_network,
)
from crypto_donation_monitor.events.donations import DonationCompletedEvent
from crypto_donation_monitor.exceptions import (
    DonationNotFoundError,
    MissingRequiredConfigError,
    UnsupportedAssetError,
)
from crypto_donation_monitor.models.donation import (
    CryptoMetadata,
    Donation,
    DonationSource,
    DonationStatus,
)
from crypto_donation_monitor.models.payment import CryptoPaymentIntent, SubmissionResult
from crypto_donation_monitor.models.verification import VerificationResult
from crypto_donation_monitor.utils.units import round_up, to_base_units
from crypto_donation_monitor.utils.validation import is_hex_tx_hash, mask_address

if TYPE_CHECKING:
    from bubus import EventBus  # type: ignore[import-untyped]

    from crypto_donation_monitor.config import Settings
    from crypto_donation_monitor.persistence.repositories.interfaces import IDonationStore
    from crypto_donation_monitor.services.prices import PriceOracle
    from crypto_donation_monitor.services.verification import TransactionVerifier


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_payment_uri(
    network: Network,
    symbol: str,
    address: str,
    amount: Decimal,
    *,
    destination_tag: int | None = None,
) -> str:
    """Wallet deep link for a payment (BIP-21, EIP-681, solana:, tron:, xrp:)."""
    policy = get_policy(network)
    amount_str = format(amount.normalize(), "f")
    token = policy.token(symbol) if symbol != policy.native_symbol else None

    if network == Network.BITCOIN:
        return f"bitcoin:{address}?{urlencode({'amount': amount_str})}"
    if network in (Network.ETHEREUM, Network.BSC):
        if token is None:
            wei = to_base_units(amount, policy.native_decimals)
            return f"ethereum:{address}@{policy.chain_id}?value={wei}"
        raw = to_base_units(amount, token.decimals)
        return f"ethereum:{token.address}@{policy.chain_id}/transfer?address={address}&uint256={raw}"
    if network == Network.SOLANA:
        params = {"amount": amount_str}
        if token is not None:
            params["spl-token"] = token.address
        return f"solana:{address}?{urlencode(params)}"
    if network == Network.TRON:
        params = {"amount": amount_str}
        if token is not None:
            params["token"] = token.address
        return f"tron:{address}?{urlencode(params)}"
    params = {"amount": amount_str}
    if destination_tag is not None:
        params["dt"] = str(destination_tag)
    return f"xrp:{address}?{urlencode(params)}"


class CryptoPaymentService:
    """Creates pending crypto donations for donors and verifies the hashes they submit."""

    def __init__(
        self,
        donation_store: IDonationStore,
        price_oracle: PriceOracle,
        verifier: TransactionVerifier,
        settings: Settings,
        *,
        event_bus: Optional[Any] = None,
        clock: Callable[[], datetime] = _utcnow,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            donation_store: Where intents are stored as pending donations.
            price_oracle: USD to crypto conversion.
            verifier: Checks submitted transaction hashes.
            settings: Uses settings.wallets and settings.monitor.payment_intent_ttl_hours.
            event_bus: Optional; if set, emits DonationCompletedEvent when a hash verifies.
            clock: Returns the current UTC time (injectable for tests).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._store = donation_store
        self._prices = price_oracle
        self._verifier = verifier
        self._settings = settings
        self._event_bus: "EventBus | None" = event_bus
        self._clock = clock
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def create_payment_intent(
        self,
        usd_amount: Decimal,
        currency: str,
        network: str | Network | None = None,
    ) -> CryptoPaymentIntent:
        """Quote usd_amount in currency and store a pending donation for it.

        Args:
            usd_amount: Donation value in USD (> 0).
            currency: Asset the donor pays with (BTC, ETH, USDT...).
            network: Network to pay on; defaults to the currency's first network.

        Raises:
            ValueError: If usd_amount is not positive.
            UnsupportedAssetError: If the currency is unknown or not offered on network.
            UnsupportedNetworkError: If network is not a supported name.
            MissingRequiredConfigError: If no receiving wallet is configured for the network.
        """
        if usd_amount <= 0:
            raise ValueError("usd_amount must be > 0")
        symbol = currency.strip().upper()
        offered = CURRENCY_NETWORKS.get(symbol)
        if not offered:
            raise UnsupportedAssetError(f"Unsupported currency: {symbol}", asset=symbol)
        resolved = parse_network(network) if network is not None else offered[0]
        if resolved not in offered:
            raise UnsupportedAssetError(
                f"{symbol} is not offered on {resolved.value}",
                asset=symbol,
                network=resolved.value,
            )

        policy = get_policy(resolved)
        address = self._settings.wallets.address_for(resolved)
        if not address:
            raise MissingRequiredConfigError(f"No receiving wallet configured for {resolved.value}")
        destination_tag = self._settings.wallets.xrp_destination_tag if resolved == Network.XRP else None

        price = await self._prices.get_price(symbol)
        places = min(QUOTE_PRECISION.get(symbol, 8), policy.decimals_for(symbol))
        crypto_amount = round_up(usd_amount / price, places)
        now = self._clock()
        expires_at = now + timedelta(hours=self._settings.monitor.payment_intent_ttl_hours)

        donation = Donation.create(
            amount=usd_amount,
            currency=symbol,
            network=resolved,
            created_at=now,
            metadata=CryptoMetadata(
                network=resolved,
                asset_symbol=symbol,
                crypto_amount=crypto_amount,
                crypto_price=price,
                wallet_address=address,
                destination_tag=destination_tag,
                source=DonationSource.PAYMENT_INTENT,
                expires_at=expires_at,
            ),
        )
        donation_id = await self._store.create(donation)

        intent = CryptoPaymentIntent(
            donation_id=donation_id,
            network=resolved,
            currency=symbol,
            wallet_address=address,
            crypto_amount=crypto_amount,
            crypto_price=price,
            usd_amount=usd_amount,
            payment_uri=build_payment_uri(
                resolved, symbol, address, crypto_amount, destination_tag=destination_tag
            ),
            expires_at=expires_at,
            required_confirmations=policy.required_confirmations,
            destination_tag=destination_tag,
        )
        self._logger.info(
            "payment_intent_created",
            donation_id=donation_id,
            payment_network=resolved.value,
            payment_currency=symbol,
            payment_crypto_amount=str(crypto_amount),
            payment_usd_amount=float(usd_amount),
            payment_wallet_masked=mask_address(address),
        )
        return intent

    async def submit_transaction_hash(self, donation_id: str, tx_hash: str) -> SubmissionResult:
        """Attach tx_hash to a pending crypto donation and verify it.

        Valid (including the provider-unavailable fallback) completes the donation with
        manual_review_required taken from the result; anything else leaves it pending.

        Raises:
            DonationNotFoundError: If donation_id is unknown.
            ValueError: If the donation is not a pending crypto donation.
        """
        donation = await self._store.get(donation_id)
        if donation is None:
            raise DonationNotFoundError(donation_id)
        meta = donation.crypto_metadata
        if meta is None:
            raise ValueError(f"Donation {donation_id} is not a crypto donation")
        if not donation.is_pending:
            raise ValueError(f"Donation {donation_id} is already {donation.status.value}")
        tx_hash = tx_hash.strip()

        with bound_contextvars(payment_donation_id=donation_id, payment_network=meta.network.value):
            rejection = await self._precheck(donation, meta, tx_hash)
            if rejection is not None:
                self._logger.info("payment_tx_hash_rejected", error_message=rejection.error)
                return SubmissionResult(donation=donation, verification=rejection)

            await self._store.update_status(donation_id, DonationStatus.PENDING, tx_hash)
            result = await self._verifier.verify(
                tx_hash,
                meta.network,
                meta.crypto_amount,
                meta.wallet_address,
                meta.asset_symbol,
                destination_tag=meta.destination_tag,
            )

            if result.is_valid:
                updated = await self._store.update_status(
                    donation_id,
                    DonationStatus.COMPLETED,
                    tx_hash,
                    confirmations=result.confirmations,
                    manual_review_required=result.manual_review_required,
                )
                self._emit_completed(updated)
            else:
                pending = await self._store.update_status(
                    donation_id,
                    DonationStatus.PENDING,
                    tx_hash,
                    confirmations=result.confirmations,
                    manual_review_required=result.manual_review_required or None,
                )
                updated = pending.with_metadata(replace(meta, verification_error=result.error))
                await self._store.save(updated)

            self._logger.info(
                "payment_tx_hash_verified",
                payment_is_valid=result.is_valid,
                payment_manual_review=result.manual_review_required,
                payment_confirmations=result.confirmations,
                error_message=result.error,
            )
            return SubmissionResult(donation=updated, verification=result)

    async def _precheck(
        self,
        donation: Donation,
        meta: CryptoMetadata,
        tx_hash: str,
    ) -> VerificationResult | None:
        """Reject hashes that are malformed or already attached to another donation."""
        required = get_policy(meta.network).required_confirmations
        if not tx_hash or (meta.network != Network.SOLANA and not is_hex_tx_hash(tx_hash)):
            return VerificationResult.invalid(
                "Invalid transaction hash format",
                network=meta.network,
                tx_hash=tx_hash,
                required_confirmations=required,
            )
        existing = await self._store.find_by_tx_hash(tx_hash)
        if existing is not None and existing.id != donation.id:
            return VerificationResult.invalid(
                "Transaction hash already used by another donation",
                network=meta.network,
                tx_hash=tx_hash,
                required_confirmations=required,
            )
        return None

    def _emit_completed(self, donation: Donation) -> None:
        """Emit DonationCompletedEvent for DonationNotifier."""
        if self._event_bus is None:
            return
        self._event_bus.dispatch(
            DonationCompletedEvent(
                donation_id=donation.id,
                network=donation.network.value if donation.network else None,
                tx_hash=donation.tx_hash,
                currency=donation.currency,
                usd_amount=donation.amount,
                confirmations=donation.confirmations,
                manual_review_required=donation.manual_review_required,
            )
        )
