# -*- coding: utf-8 -*-
"""Unit tests for TransactionVerifier."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest

from crypto_donation_monitor.adapters.evm import EvmAdapter
from crypto_donation_monitor.adapters.registry import AdapterRegistry
from crypto_donation_monitor.config.networks import Network
from crypto_donation_monitor.exceptions import (
    ConfigurationError,
    TransactionNotFoundError,
    TransferDecodingError,
    TransientProviderError,
    UnsupportedAssetError,
    UnsupportedNetworkError,
)
from crypto_donation_monitor.models.transaction import ChainTransaction, TransactionStatus
from crypto_donation_monitor.services.verification import TransactionVerifier

BTC_WALLET = "bc1qdonationwallet0000000000000000000000"
ETH_WALLET = "0x2d27b6e21b3d4d7c9a43fdf58f12345678907706"
XRP_WALLET = "rDonationWalletXrp1111111111111111"
TX_HASH = "a" * 64


def _chain_tx(network: Network, **overrides: Any) -> ChainTransaction:
    fields: dict[str, Any] = {
        "hash": TX_HASH,
        "network": network,
        "from_address": "sender",
        "to_address": BTC_WALLET,
        "value": Decimal("0.01"),
        "token_symbol": None,
        "block_height": 800_000,
        "confirmations": 6,
        "timestamp": datetime(2026, 2, 13, 11, 0, tzinfo=timezone.utc),
        "status": TransactionStatus.SUCCESS,
    }
    fields.update(overrides)
    return ChainTransaction(**fields)


def _verifier(network: Network, *, result: Any = None, error: Exception | None = None) -> TransactionVerifier:
    adapter = SimpleNamespace(
        network=network,
        fetch_transaction_by_hash=AsyncMock(return_value=result, side_effect=error),
    )
    return TransactionVerifier(AdapterRegistry([adapter]))  # type: ignore[list-item]


async def test_bitcoin_exact_amount_with_enough_confirmations_is_valid() -> None:
    verifier = _verifier(Network.BITCOIN, result=_chain_tx(Network.BITCOIN))

    result = await verifier.verify(TX_HASH, "bitcoin", Decimal("0.01"), BTC_WALLET, "BTC")

    assert result.is_valid
    assert result.error is None
    assert result.confirmations == 6
    assert result.is_hard_verified


async def test_bitcoin_below_required_confirmations_is_invalid() -> None:
    verifier = _verifier(Network.BITCOIN, result=_chain_tx(Network.BITCOIN, confirmations=0))

    result = await verifier.verify(TX_HASH, "bitcoin", Decimal("0.01"), BTC_WALLET, "BTC")

    assert not result.is_valid
    assert result.confirmations == 0
    assert result.error == "Insufficient confirmations: 0/1"


@pytest.mark.parametrize(("confirmations", "expected"), [(12, True), (11, False)])
async def test_confirmation_boundary_on_ethereum(confirmations: int, expected: bool) -> None:
    tx = _chain_tx(Network.ETHEREUM, to_address=ETH_WALLET, value=Decimal("0.5"), confirmations=confirmations)
    verifier = _verifier(Network.ETHEREUM, result=tx)

    result = await verifier.verify(TX_HASH, Network.ETHEREUM, Decimal("0.5"), ETH_WALLET, "ETH")

    assert result.is_valid is expected
    assert result.required_confirmations == 12


async def test_usdt_amount_outside_tolerance_is_invalid() -> None:
    tx = _chain_tx(
        Network.ETHEREUM,
        to_address=ETH_WALLET.upper().replace("0X", "0x"),
        value=Decimal("100.02"),
        token_symbol="USDT",
        confirmations=20,
    )
    verifier = _verifier(Network.ETHEREUM, result=tx)

    result = await verifier.verify(TX_HASH, "erc20", Decimal("100.00"), ETH_WALLET, "USDT")

    assert not result.is_valid
    assert result.error is not None
    assert "Amount mismatch" in result.error
    assert "Recipient" not in result.error


async def test_usdt_amount_within_tolerance_is_valid() -> None:
    tx = _chain_tx(Network.ETHEREUM, to_address=ETH_WALLET, value=Decimal("99.995"), token_symbol="USDT", confirmations=20)
    verifier = _verifier(Network.ETHEREUM, result=tx)

    result = await verifier.verify(TX_HASH, "ethereum", Decimal("100"), ETH_WALLET, "usdt")

    assert result.is_valid


async def test_wrong_recipient_and_wrong_asset_are_reported_together() -> None:
    tx = _chain_tx(Network.ETHEREUM, to_address="0x" + "9" * 40, value=Decimal("25"), token_symbol="USDC", confirmations=20)
    verifier = _verifier(Network.ETHEREUM, result=tx)

    result = await verifier.verify(TX_HASH, "ethereum", Decimal("25"), ETH_WALLET, "USDT")

    assert not result.is_valid
    assert result.error == "Asset mismatch: expected USDT, got USDC; Recipient address mismatch"


async def test_failed_transaction_is_invalid() -> None:
    verifier = _verifier(Network.BITCOIN, result=_chain_tx(Network.BITCOIN, status=TransactionStatus.FAILED))

    result = await verifier.verify(TX_HASH, "bitcoin", Decimal("0.01"), BTC_WALLET, "BTC")

    assert not result.is_valid
    assert "failed on chain" in (result.error or "")


async def test_xrp_destination_tag_must_match() -> None:
    tx = _chain_tx(Network.XRP, to_address=XRP_WALLET, value=Decimal("25"), confirmations=1, destination_tag=7)
    verifier = _verifier(Network.XRP, result=tx)

    result = await verifier.verify(TX_HASH, "xrp", Decimal("25"), XRP_WALLET, "XRP", destination_tag=424242)

    assert not result.is_valid
    assert "Destination tag mismatch" in (result.error or "")


async def test_provider_outage_fails_open_with_manual_review() -> None:
    verifier = _verifier(Network.ETHEREUM, error=TransientProviderError("no explorer key and rpc down"))

    result = await verifier.verify(TX_HASH, "ethereum", Decimal("100"), ETH_WALLET, "USDT")

    assert result.is_valid
    assert result.error is None
    assert result.manual_review_required
    assert not result.is_hard_verified
    assert result.amount == Decimal("100")
    assert result.to_address == ETH_WALLET


async def test_rpc_outage_without_explorer_fails_open_through_evm_adapter() -> None:
    rpc = SimpleNamespace(
        get_transaction_by_hash=AsyncMock(side_effect=TransientProviderError("rpc unreachable")),
        get_transaction_receipt=AsyncMock(side_effect=TransientProviderError("rpc unreachable")),
        block_number=AsyncMock(side_effect=TransientProviderError("rpc unreachable")),
    )
    adapter = EvmAdapter(Network.ETHEREUM, rpc, explorer=None)  # type: ignore[arg-type]
    verifier = TransactionVerifier(AdapterRegistry([adapter]))

    result = await verifier.verify(TX_HASH, "ethereum", Decimal("100"), ETH_WALLET, "USDT")

    assert result.is_valid
    assert result.error is None
    assert result.manual_review_required
    assert result.confirmations == 12
    rpc.get_transaction_by_hash.assert_awaited_once_with(TX_HASH)


async def test_decoding_failure_fails_closed_with_manual_review() -> None:
    verifier = _verifier(Network.ETHEREUM, error=TransferDecodingError("no Transfer log"))

    result = await verifier.verify(TX_HASH, "ethereum", Decimal("100"), ETH_WALLET, "USDT")

    assert not result.is_valid
    assert result.manual_review_required
    assert "Could not decode USDT transfer" in (result.error or "")


async def test_unreadable_payload_fails_closed() -> None:
    verifier = _verifier(Network.BITCOIN, error=KeyError("blockNumber"))

    result = await verifier.verify(TX_HASH, "bitcoin", Decimal("0.01"), BTC_WALLET, "BTC")

    assert not result.is_valid
    assert result.manual_review_required


async def test_transaction_not_found_is_invalid_without_review() -> None:
    verifier = _verifier(Network.BITCOIN, error=TransactionNotFoundError(TX_HASH, "bitcoin"))

    result = await verifier.verify(TX_HASH, "bitcoin", Decimal("0.01"), BTC_WALLET, "BTC")

    assert not result.is_valid
    assert not result.manual_review_required
    assert result.error == "Transaction not found"


async def test_unsupported_network_raises() -> None:
    verifier = _verifier(Network.BITCOIN, result=_chain_tx(Network.BITCOIN))

    with pytest.raises(UnsupportedNetworkError):
        await verifier.verify(TX_HASH, "dogecoin", Decimal("1"), BTC_WALLET, "DOGE")


async def test_unsupported_asset_raises() -> None:
    verifier = _verifier(Network.BITCOIN, result=_chain_tx(Network.BITCOIN))

    with pytest.raises(UnsupportedAssetError):
        await verifier.verify(TX_HASH, "bitcoin", Decimal("1"), BTC_WALLET, "USDT")


async def test_network_without_adapter_raises_configuration_error() -> None:
    verifier = _verifier(Network.BITCOIN, result=_chain_tx(Network.BITCOIN))

    with pytest.raises(ConfigurationError):
        await verifier.verify(TX_HASH, "solana", Decimal("1"), "wallet", "SOL")
