#!/usr/bin/env python3
"""Simple CLI for trying SwapJar payouts locally"""

import argparse
import asyncio
from typing import Optional

import httpx

from swapjar.config import BridgeConfig
from swapjar.core.bridge import BridgeError, BridgeStatus, PayoutRequest, ValidationError
from swapjar.core.bridge.fees import format_amount
from swapjar.core.bridge.orchestrator import BridgeOrchestrator
from swapjar.core.bridge.status import SwapStatusMonitor
from swapjar.logging_config import setup_logging
from swapjar.providers.horizon import HorizonProvider


async def cli_payout(tx_hash: str, source_chain: str, amount: str, recipient: str, asset: Optional[str] = None):
    """Run one payout through the orchestrator (simulated without a bridge secret)"""
    config = BridgeConfig.from_settings()
    orchestrator = BridgeOrchestrator(config)
    mode = "live" if orchestrator.can_execute else "simulated"
    print(f"🌉 Initiating {mode} payout on Stellar {config.network}...")

    try:
        record = await orchestrator.initiate(
            PayoutRequest(
                ethereum_tx_hash=tx_hash,
                source_chain=source_chain,
                amount=amount,
                stellar_recipient=recipient,
                target_asset=asset,
            )
        )
    except ValidationError as e:
        print(f"❌ {e.message}")
        for field, reason in e.invalid_fields.items():
            print(f"   {field}: {reason}")
        return

    icon = "✅" if record.status is BridgeStatus.COMPLETED else "🧪"
    print(f"\n{icon} Bridge {record.bridge_id}: {record.status.value}")
    print(f"   Recipient: {record.recipient}")
    print(f"   Amount:    {format_amount(record.net_amount)} {record.asset.value}")
    if record.destination_tx_id:
        print(f"   Tx:        {config.transaction_explorer_url(record.destination_tx_id)}")
    if record.failure_reason:
        print(f"\n⚠️  Real transfer failed: {record.failure_reason}")


async def cli_status(swap_id: str, account: Optional[str] = None):
    """Classify a swap from recent Stellar transactions"""
    config = BridgeConfig.from_settings()
    monitor = SwapStatusMonitor.from_config(config, HorizonProvider(config.horizon_url))
    scope = account or "the whole network"
    print(f"🔍 Looking up swap {swap_id} in {scope}...")

    try:
        report = await monitor.monitor(swap_id, account_id=account)
    except BridgeError as e:
        print(f"❌ Error: {e.message}")
        return

    print(f"\nStatus: {report.status.value}")
    if not report.events:
        print("No matching transactions yet.")
    for event in report.events:
        print(f" - {event.created_at}  {event.memo:<28}  {event.hash[:16]}…")


async def cli_account(base_url: str):
    """Call the debug endpoint of a running server and print the bridge account"""
    async with httpx.AsyncClient() as client:
        response = await client.get(f"{base_url}/api/debug/stellar-bridge", timeout=30)
    data = response.json()

    if response.status_code != 200:
        detail = data.get("detail", data)
        print(f"❌ {detail.get('error') if isinstance(detail, dict) else detail}")
        if isinstance(detail, dict):
            for solution in detail.get("solutions", []):
                print(f"   • {solution}")
        return

    print(f"🔑 {data['publicKey']} ({data['network']})")
    print(f"   Sequence: {data['sequence']}")
    for asset, balance in data.get("balances", {}).items():
        print(f"   {balance:>16} {asset}")
    print(f"   {data['explorerUrl']}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="SwapJar CLI")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command")

    payout_parser = subparsers.add_parser("payout", help="Pay out a tip on Stellar")
    payout_parser.add_argument("tx_hash", help="Source-chain transaction hash")
    payout_parser.add_argument("source_chain", help="Source EVM chain id")
    payout_parser.add_argument("amount", help="Gross amount, e.g. 100 or 12.5")
    payout_parser.add_argument("recipient", help="Stellar account (G...)")
    payout_parser.add_argument("--asset", choices=["XLM", "USDC"], help="Target asset (default: USDC)")

    status_parser = subparsers.add_parser("status", help="Check swap status from ledger memos")
    status_parser.add_argument("swap_id", help="Swap identifier")
    status_parser.add_argument("--account", help="Only scan this account's transactions")

    account_parser = subparsers.add_parser("account", help="Show the bridge account of a running server")
    account_parser.add_argument("--base-url", default="http://localhost:8000", help="Server base URL")

    return parser


async def main():
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    setup_logging(args.log_level, json_logs=False)

    if args.command == "payout":
        await cli_payout(args.tx_hash, args.source_chain, args.amount, args.recipient, args.asset)

    elif args.command == "status":
        await cli_status(args.swap_id, args.account)

    elif args.command == "account":
        await cli_account(args.base_url.rstrip("/"))

    else:
        print(f"❌ Unknown command: {args.command}")
        parser.print_help()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
