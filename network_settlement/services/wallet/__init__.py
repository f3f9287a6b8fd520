"""Wallet ledger."""

from network_settlement.services.wallet.wallet_ledger import WalletLedger

__all__ = ["WalletLedger"]
