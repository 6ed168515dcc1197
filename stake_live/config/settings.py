"""Locked parameters for STAKE LIVE.

Network, contract and accumulator constants. Only the RPC endpoint, the
tracked wallet and the log location are meant to be overridden (environment
or command line); everything else is fixed for the MYST staking pool on
Polygon.
"""

import os

# Network
CHAIN_ID: int = 137  # Polygon PoS
PUBLIC_RPC_URL: str = "https://polygon-rpc.com/"
ALCHEMY_RPC_TEMPLATE: str = "https://polygon-mainnet.g.alchemy.com/v2/{api_key}"

# Tracked wallet
WALLET_ADDRESS: str = "0xa26762470fc8F22b4A504fedd83D2f878314A1D9"

# Contracts
STAKING_CONTRACT_ADDRESS: str = "0xbf9f6b1d910aa207daa400931430ef110570f8ff"
STAKE_TOKEN_ADDRESS: str = "0x8aE66d7858578764d573FfB0ece58Db59E569bC1"  # ERC-721
REWARD_TOKEN_ADDRESS: str = "0x1379E8886A944d2D9d440b3d88DF536Aea08d9F3"  # ERC-20
NODE_REWARD_SENDER_ADDRESS: str = "0x80Ed28d84792d8b153bf2F25F0C4B7a1381dE4ab"  # Node payouts

# Staking pool call selectors, matched against transaction input
STAKE_SELECTOR: str = "a694fc3a"  # stake(uint256 amount)
INCREASE_STAKE_SELECTOR: str = "bec10cde"  # increaseStake(uint256 tokenId, uint256 delta)

# Transfer lookups (alchemy_getAssetTransfers, Alchemy endpoints only)
TRANSFER_CATEGORIES = ("external", "internal", "erc20", "erc721", "erc1155")

# Token
TOKEN_SYMBOL: str = "MYST"
TOKEN_DECIMALS: int = 18

# Reward accumulator
REWARD_WINDOW_MINUTES: int = 5
REWARD_WINDOW_MS: int = REWARD_WINDOW_MINUTES * 60 * 1000
WARMUP_POINTS: int = 5
WARMUP_SAMPLE_AMOUNT: str = "0.0001"  # display units per warm-up point

# Display precision
SESSION_TOTAL_DECIMALS: int = 6
PER_MINUTE_DECIMALS: int = 6
PER_HOUR_DECIMALS: int = 2
PER_DAY_DECIMALS: int = 2
BALANCE_DECIMALS: int = 4

# RPC
RPC_TIMEOUT: int = 20  # seconds
RPC_MAX_RETRIES: int = 3
RPC_RETRY_DELAY: float = 1.0  # seconds, multiplied by attempt number

# Polling
POLL_INTERVAL_DEFAULT: float = 60.0  # seconds

# Event stream caps
MAX_EVENT_BUFFER_BYTES: int = 64_000
MAX_TOKEN_LINES: int = 8

# Session Logging
LOG_LEVEL_DEFAULT: str = "SESSION_ONLY"
LOG_FORMAT: str = "JSONL"
LOG_DIR: str = "logs/"


def env(name: str, default: str) -> str:
    """Read an environment variable, treating empty values as unset."""
    val = os.getenv(name)
    return val if val else default


def rpc_url_from_env() -> str:
    """Pick the JSON-RPC endpoint.

    STAKE_LIVE_RPC_URL wins, then an Alchemy endpoint when ALCHEMY_API_KEY is
    set (avoids public endpoint rate limits), then the public Polygon RPC.
    """
    explicit = env("STAKE_LIVE_RPC_URL", "")
    if explicit:
        return explicit
    api_key = env("ALCHEMY_API_KEY", "")
    if api_key:
        return ALCHEMY_RPC_TEMPLATE.format(api_key=api_key)
    return PUBLIC_RPC_URL
