# -*- coding: utf-8 -*-
"""TransactionVerifier: checks that a claimed tx hash pays what the donor said it pays."""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import structlog
from structlog.contextvars import bound_contextvars

from crypto_donation_monitor.config.networks import (
    Network,
    addresses_equal,
    amount_tolerance,
    get_policy,
)
from crypto_donation_monitor.exceptions import (
    ProviderError,
    TransactionNotFoundError,
    TransferDecodingError,
    UnsupportedAssetError,
)
from crypto_donation_monitor.models.transaction import ChainTransaction, TransactionStatus
from crypto_donation_monitor.models.verification import VerificationResult
from crypto_donation_monitor.utils.validation import mask_address

if TYPE_CHECKING:
    from crypto_donation_monitor.adapters.registry import AdapterRegistry


class TransactionVerifier:
    """Verifies a transaction hash against expected recipient, amount and asset.

    Outcomes:
    - chain evidence checks out: is_valid=True.
    - transaction missing, or recipient/amount/asset/status/tag wrong: is_valid=False.
    - transaction found but the expected transfer cannot be decoded: is_valid=False
      with manual_review_required=True.
    - provider unreachable: is_valid=True with manual_review_required=True and the
      expected values echoed back, so a donor is not blocked by an explorer outage.
    Unsupported network or asset raises ConfigurationError.
    """

    def __init__(
        self,
        registry: AdapterRegistry,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._registry = registry
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def verify(
        self,
        tx_hash: str,
        network: str | Network,
        expected_amount: Decimal,
        expected_to_address: str,
        currency: str,
        *,
        destination_tag: int | None = None,
    ) -> VerificationResult:
        """Verify tx_hash on network.

        Args:
            tx_hash: Transaction hash (or Solana signature) claimed by the donor.
            network: Network name, alias or enum.
            expected_amount: Amount in asset units (not USD).
            expected_to_address: Our receiving address.
            currency: Asset symbol (native or a supported token on that network).
            destination_tag: XRP only; when given the payment must carry it.

        Raises:
            UnsupportedNetworkError: If the network is not supported.
            UnsupportedAssetError: If currency is not supported on the network.
            ConfigurationError: If no adapter is registered for the network.
        """
        policy = get_policy(network)
        symbol = currency.strip().upper()
        if not policy.supports_asset(symbol):
            raise UnsupportedAssetError(
                f"{symbol} is not supported on {policy.network.value}",
                asset=symbol,
                network=policy.network.value,
            )
        adapter = self._registry.get(policy.network)
        tx_hash = tx_hash.strip()
        required = policy.required_confirmations

        with bound_contextvars(
            verify_network=policy.network.value,
            verify_tx_hash=tx_hash,
            verify_currency=symbol,
        ):
            try:
                tx = await adapter.fetch_transaction_by_hash(
                    tx_hash, asset=symbol, recipient=expected_to_address
                )
            except TransactionNotFoundError:
                self._logger.info("verify_transaction_not_found")
                return VerificationResult.invalid(
                    "Transaction not found",
                    network=policy.network,
                    tx_hash=tx_hash,
                    required_confirmations=required,
                )
            except TransferDecodingError as e:
                self._logger.warning("verify_transfer_not_decoded", error_message=str(e))
                return VerificationResult.invalid(
                    f"Could not decode {symbol} transfer: {e}",
                    network=policy.network,
                    tx_hash=tx_hash,
                    required_confirmations=required,
                    manual_review_required=True,
                )
            except ProviderError as e:
                self._logger.warning(
                    "verify_provider_unavailable_assuming_valid",
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
                return VerificationResult.assumed_valid(
                    network=policy.network,
                    tx_hash=tx_hash,
                    expected_amount=expected_amount,
                    expected_to_address=expected_to_address,
                    required_confirmations=required,
                )
            except (KeyError, TypeError, ValueError) as e:
                # Payload the adapter could not interpret: never accept it blindly.
                self._logger.warning(
                    "verify_payload_unreadable",
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
                return VerificationResult.invalid(
                    f"Unreadable provider payload: {e}",
                    network=policy.network,
                    tx_hash=tx_hash,
                    required_confirmations=required,
                    manual_review_required=True,
                )

            result = self._evaluate(
                tx,
                expected_amount=expected_amount,
                expected_to_address=expected_to_address,
                symbol=symbol,
                required=required,
                destination_tag=destination_tag,
            )
            self._logger.info(
                "verify_completed",
                verify_is_valid=result.is_valid,
                verify_confirmations=result.confirmations,
                verify_required_confirmations=required,
                verify_to_masked=mask_address(result.to_address),
                verify_error=result.error,
            )
            return result

    @staticmethod
    def _evaluate(
        tx: ChainTransaction,
        *,
        expected_amount: Decimal,
        expected_to_address: str,
        symbol: str,
        required: int,
        destination_tag: int | None,
    ) -> VerificationResult:
        errors: list[str] = []
        if tx.asset_symbol != symbol:
            errors.append(f"Asset mismatch: expected {symbol}, got {tx.asset_symbol}")
        if not addresses_equal(tx.network, tx.to_address, expected_to_address):
            errors.append("Recipient address mismatch")
        tolerance = amount_tolerance(symbol)
        if abs(tx.value - expected_amount) > tolerance:
            errors.append(f"Amount mismatch: expected {expected_amount}, got {tx.value}")
        if tx.status == TransactionStatus.FAILED:
            errors.append("Transaction failed on chain")
        if destination_tag is not None and tx.destination_tag != destination_tag:
            errors.append(f"Destination tag mismatch: expected {destination_tag}, got {tx.destination_tag}")
        if tx.confirmations < required:
            errors.append(f"Insufficient confirmations: {tx.confirmations}/{required}")

        return VerificationResult(
            is_valid=not errors,
            confirmations=tx.confirmations,
            amount=tx.value,
            to_address=tx.to_address,
            from_address=tx.from_address,
            block_height=tx.block_height,
            timestamp=tx.timestamp,
            error="; ".join(errors) if errors else None,
            network=tx.network,
            tx_hash=tx.hash,
            required_confirmations=required,
        )
