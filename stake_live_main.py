#!/usr/bin/env python3
"""STAKE LIVE - Real-time staking reward dashboard.

Entry point for the live monitoring system.

Usage:
    python stake_live_main.py                          # Track the default wallet
    python stake_live_main.py --address 0x...          # Track another wallet
    python stake_live_main.py --demo                   # Demo mode (no RPC)
    python stake_live_main.py --replay logs/x.jsonl    # Summarize a FULL session log

Environment:
    ALCHEMY_API_KEY     Use the Alchemy Polygon endpoint
    STAKE_LIVE_RPC_URL  Use an explicit JSON-RPC endpoint
"""

import argparse
import os
import sys
import time
from typing import List, Optional

from stake_live.cli.renderer import CLIRenderer
from stake_live.config.settings import (
    LOG_DIR,
    LOG_LEVEL_DEFAULT,
    POLL_INTERVAL_DEFAULT,
    WALLET_ADDRESS,
    rpc_url_from_env,
)
from stake_live.core.session_clock import SessionClock
from stake_live.core.units import parse_units
from stake_live.integrations.abi import is_address
from stake_live.integrations.chain_fetcher import ChainStateFetcher
from stake_live.integrations.rpc_client import JsonRpcClient
from stake_live.logging.log_replay import replay_session, session_frame, summarize_session, write_tsv
from stake_live.logging.session_logger import LOG_LEVELS, SessionLogger
from stake_live.models.events import ContractSnapshot, RewardTransfer, StakedToken, StakeTransaction
from stake_live.orchestration.live_processor import LiveProcessor

DEMO_TOKEN_IDS = ["1042", "1043"]


def build_demo_snapshots(address: str, interval_ms: int = 30_000) -> List[ContractSnapshot]:
    """Generate a snapshot sequence covering every accumulator path.

    Steady accrual, a flat stretch, one failed poll, more accrual, a claim
    that rolls the counter back, then accrual on the new session.
    """
    t0 = int(time.time() * 1000) - 20 * 60 * 1000  # Start 20 minutes ago

    staked = [parse_units("1500"), parse_units("500")]
    step = parse_units("0.00035")
    earned = parse_units("12.5")
    latest_reward = RewardTransfer(
        tx_hash="0x" + "5e" * 32,
        value="0.8421",
        block_number=61_000_000,
        timestamp=t0 - 3 * 60 * 60 * 1000,
    )
    last_stake = StakeTransaction(
        tx_hash="0x" + "c4" * 32,
        method="increaseStake",
        amount=str(parse_units("500")),
        token_id=DEMO_TOKEN_IDS[1],
        block_number=60_900_000,
        timestamp=t0 - 2 * 24 * 60 * 60 * 1000,
    )

    plan = (
        ["accrue"] * 10
        + ["flat"] * 3
        + ["fail"]
        + ["accrue"] * 2
        + ["claim"]
        + ["accrue"] * 3
    )

    snapshots: List[ContractSnapshot] = []
    for i, action in enumerate(plan):
        fetched_at = t0 + i * interval_ms

        if action == "fail":
            snapshots.append(ContractSnapshot(
                address=address,
                fetched_at=fetched_at,
                success=False,
                error="staking contract not accessible: demo outage",
            ))
            continue

        if action == "accrue":
            earned += step
        elif action == "claim":
            earned = parse_units("0.0002")

        # Rewards split 3:1, matching the stake split
        first = earned * 3 // 4
        rewards = [first, earned - first]
        snapshots.append(ContractSnapshot(
            address=address,
            balance="250.75",
            token_ids=list(DEMO_TOKEN_IDS),
            staked_amount=str(sum(staked)),
            earned_rewards=str(earned),
            total_staked=str(parse_units("2750000")),
            reward_rate="0",
            staked_tokens=[
                StakedToken(token_id=tid, staked_amount=str(s), reward_amount=str(r))
                for tid, s, r in zip(DEMO_TOKEN_IDS, staked, rewards)
            ],
            latest_reward=latest_reward,
            last_stake=last_stake,
            fetched_at=fetched_at,
        ))

    return snapshots


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="STAKE LIVE - Real-time staking reward dashboard",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Environment: ALCHEMY_API_KEY or STAKE_LIVE_RPC_URL select the RPC endpoint.",
    )
    parser.add_argument(
        "--address",
        type=str,
        default=WALLET_ADDRESS,
        help="Wallet address to track (default: configured wallet)",
    )
    parser.add_argument(
        "--rpc-url",
        type=str,
        default=None,
        help="JSON-RPC endpoint (default: from environment, else public Polygon RPC)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=LOG_LEVEL_DEFAULT,
        choices=list(LOG_LEVELS),
        help=f"Log level (default: {LOG_LEVEL_DEFAULT})",
    )
    parser.add_argument(
        "--refresh-rate",
        type=float,
        default=POLL_INTERVAL_DEFAULT,
        help=f"Seconds between polls (default: {POLL_INTERVAL_DEFAULT:.0f})",
    )
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Run with simulated polls (no RPC connection needed)",
    )
    parser.add_argument(
        "--replay",
        type=str,
        default=None,
        help="Summarize a FULL-level session log and exit",
    )
    parser.add_argument(
        "--tsv",
        type=str,
        default=None,
        help="With --replay: also write the per-poll table to this TSV file",
    )
    return parser.parse_args()


def run_replay(log_path: str, tsv_path: Optional[str] = None) -> None:
    """Print a session summary, optionally exporting per-poll rows."""
    events = replay_session(log_path)
    summary = summarize_session(events)
    print(f"Session log: {log_path}")
    print(f"  Polls:            {summary['polls']}")
    print(f"  Rollbacks:        {summary['rollbacks']}")
    print(f"  Fetch failures:   {summary['fetch_failures']}")
    print(f"  Duration:         {summary['duration_minutes']:.1f} min")
    print(f"  Session total:    {summary['final_session_total']:.6f}")
    print(f"  Mean rate:        {summary['mean_per_minute']:.6f} /min")
    print(f"  Peak rate:        {summary['max_per_minute']:.6f} /min")
    if tsv_path:
        write_tsv(session_frame(events), tsv_path)
        print(f"  Wrote {tsv_path}")


def main() -> None:
    """Main entry point."""
    args = parse_args()

    if args.replay:
        try:
            run_replay(args.replay, args.tsv)
        except FileNotFoundError as exc:
            print(f"Error: {exc}")
            sys.exit(1)
        return

    address = args.address.strip()
    if not is_address(address):
        print(f"Error: invalid wallet address {address!r}.")
        sys.exit(1)

    if args.refresh_rate <= 0:
        print("Error: --refresh-rate must be positive.")
        sys.exit(1)

    # Auto-create logs directory
    os.makedirs(LOG_DIR, exist_ok=True)

    fetcher = None
    if not args.demo:
        rpc_url = args.rpc_url or rpc_url_from_env()
        fetcher = ChainStateFetcher(JsonRpcClient(rpc_url))
        print(f"RPC endpoint: {rpc_url.split('/v2/')[0]}")

    session_logger = SessionLogger(
        address=address,
        log_level=args.log_level,
        output_dir=LOG_DIR,
    )
    print(f"Session log: {session_logger.filepath}")

    processor = LiveProcessor(
        address=address,
        fetcher=fetcher,
        session_logger=session_logger,
        cli_renderer=CLIRenderer(),
        refresh_rate=args.refresh_rate,
        clock=SessionClock(replay_mode=args.demo),
    )

    print(f"Starting STAKE LIVE for {address[:6]}...{address[-4:]}")
    print(f"Mode: {'DEMO' if args.demo else 'LIVE'} | Log level: {args.log_level}")
    print("Press Ctrl+C to exit.\n")

    time.sleep(1)  # Brief pause before clearing screen

    if args.demo:
        processor.run_demo(build_demo_snapshots(address))
    else:
        processor.run()


if __name__ == "__main__":
    main()
