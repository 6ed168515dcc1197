"""On-chain state fetcher for STAKE LIVE.

Reads the wallet's reward-token balance, its stake tokens (ERC-721,
enumerable) and per-token stake/reward counters from the staking pool, plus
the latest node reward payout and the latest stake call from the wallet.

Every public method degrades to a zero/empty default instead of raising
on RPC failures. fetch_chain_state() additionally flags incomplete reads
with success=False so the caller can keep the reward counter out of the
accumulator: a zero default would look like a claim.
"""

from typing import Any, Callable, Dict, List, Optional, Tuple

from ..config.settings import (
    INCREASE_STAKE_SELECTOR,
    NODE_REWARD_SENDER_ADDRESS,
    REWARD_TOKEN_ADDRESS,
    STAKE_SELECTOR,
    STAKE_TOKEN_ADDRESS,
    STAKING_CONTRACT_ADDRESS,
    TOKEN_DECIMALS,
    TRANSFER_CATEGORIES,
)
from ..core.session_clock import wallclock_ms
from ..core.units import format_units
from ..models.events import ContractSnapshot, RewardTransfer, StakedToken, StakeTransaction
from .abi import decode_address_word, decode_uint256, decode_words, encode_call, is_address
from .rpc_client import JsonRpcClient, RpcError

_FETCH_ERRORS = (RpcError, ValueError)
# Transfer-index and block payloads are plain JSON objects
_LOOKUP_ERRORS = (RpcError, ValueError, KeyError, TypeError, AttributeError)


def parse_stake_input(data: str) -> Optional[Tuple[str, Optional[str], int]]:
    """Decode stake/increaseStake calldata into (method, token_id, amount).

    Returns None for any other call or truncated input.
    """
    if not isinstance(data, str) or not data.startswith("0x") or len(data) < 10:
        return None
    selector = data[2:10].lower()
    args = data[10:]
    if selector == INCREASE_STAKE_SELECTOR and len(args) >= 128:
        token_id, amount = decode_words(args[:128])
        return "increaseStake", str(token_id), amount
    if selector == STAKE_SELECTOR and len(args) >= 64:
        return "stake", None, decode_words(args[:64])[0]
    return None


class ChainStateFetcher:
    """Read-only queries against the reward token, stake token and pool."""

    def __init__(
        self,
        rpc_client: JsonRpcClient,
        staking_address: str = STAKING_CONTRACT_ADDRESS,
        reward_token_address: str = REWARD_TOKEN_ADDRESS,
        collection_address: Optional[str] = STAKE_TOKEN_ADDRESS,
        reward_sender_address: str = NODE_REWARD_SENDER_ADDRESS,
        clock: Callable[[], int] = wallclock_ms,
    ) -> None:
        for name, value in (
            ("staking_address", staking_address),
            ("reward_token_address", reward_token_address),
            ("reward_sender_address", reward_sender_address),
        ):
            if not is_address(value):
                raise ValueError(f"Invalid {name}: {value!r}")
        if collection_address is not None and not is_address(collection_address):
            raise ValueError(f"Invalid collection_address: {collection_address!r}")

        self.rpc = rpc_client
        self.staking_address = staking_address
        self.reward_token_address = reward_token_address
        self.collection_address = collection_address
        self.reward_sender_address = reward_sender_address
        self._clock = clock

    def _call_uint(self, to: str, signature: str, *args) -> int:
        return decode_uint256(self.rpc.eth_call(to, encode_call(signature, *args)))

    def fetch_balance(self, address: str) -> str:
        """Reward-token balance in display units ("0.0" on failure)."""
        if not is_address(address):
            return format_units(0)

        try:
            decimals = self._call_uint(self.reward_token_address, "decimals()")
        except _FETCH_ERRORS:
            decimals = TOKEN_DECIMALS  # Most ERC-20s, MYST included

        try:
            balance = self._call_uint(self.reward_token_address, "balanceOf(address)", address)
        except _FETCH_ERRORS:
            return format_units(0)

        return format_units(balance, decimals)

    def fetch_stake_token_address(self) -> Optional[str]:
        """Ask the pool which ERC-721 contract issues its stake tokens."""
        try:
            result = self.rpc.eth_call(self.staking_address, encode_call("getStakeToken()"))
            token = decode_address_word(decode_words(result)[0])
        except _FETCH_ERRORS:
            return None
        if int(token, 16) == 0:
            return None
        return token

    def fetch_owned_token_ids(
        self, address: str, collection_address: Optional[str] = None
    ) -> List[str]:
        """All stake-token ids owned by address ([] on failure)."""
        token_ids, _ = self._owned_token_ids(address, collection_address)
        return token_ids

    def _owned_token_ids(
        self, address: str, collection_address: Optional[str] = None
    ) -> Tuple[List[str], Optional[str]]:
        collection = (
            collection_address
            or self.collection_address
            or self.fetch_stake_token_address()
        )
        if not collection:
            return [], "stake token contract unknown"
        if not is_address(address) or not is_address(collection):
            return [], f"invalid address: {address!r}"

        try:
            count = self._call_uint(collection, "balanceOf(address)", address)
        except _FETCH_ERRORS as exc:
            return [], f"balanceOf failed: {exc}"

        token_ids: List[str] = []
        failed: List[str] = []
        for index in range(count):
            try:
                token_id = self._call_uint(
                    collection, "tokenOfOwnerByIndex(address,uint256)", address, index
                )
            except _FETCH_ERRORS:
                failed.append(str(index))  # Skip unreadable index, keep the rest
                continue
            token_ids.append(str(token_id))

        if failed:
            return token_ids, f"tokenOfOwnerByIndex failed at index {', '.join(failed)}"
        return token_ids, None

    def fetch_stake_snapshot(self, address: str, token_ids: List[str]) -> ContractSnapshot:
        """Sum stake and reward counters over the given stake tokens.

        Returns a zero snapshot with success=False when the pool is not
        reachable. A token whose counters cannot be read shows up as a zero
        entry and also marks the snapshot incomplete.
        """
        snapshot = ContractSnapshot(
            address=address, token_ids=list(token_ids), fetched_at=self._clock()
        )

        # getReserve doubles as the pool reachability check
        try:
            total_staked = self._call_uint(self.staking_address, "getReserve()")
        except _FETCH_ERRORS as exc:
            snapshot.success = False
            snapshot.error = f"staking contract not accessible: {exc}"
            return snapshot

        reward_rate = 0
        try:
            reward_rate = self._call_uint(self.staking_address, "rewardRate()")
        except _FETCH_ERRORS:
            reward_rate = 0  # Optional; not every pool exposes it

        staked_sum = 0
        reward_sum = 0
        failed: List[str] = []
        for token_id in token_ids:
            try:
                staked = self._call_uint(self.staking_address, "getStake(uint256)", int(token_id))
                reward = self._call_uint(
                    self.staking_address, "getStakingReward(uint256)", int(token_id)
                )
            except _FETCH_ERRORS:
                failed.append(token_id)
                snapshot.staked_tokens.append(StakedToken(token_id=token_id))
                continue

            staked_sum += staked
            reward_sum += reward
            snapshot.staked_tokens.append(
                StakedToken(token_id=token_id, staked_amount=str(staked), reward_amount=str(reward))
            )

        snapshot.staked_amount = str(staked_sum)
        snapshot.earned_rewards = str(reward_sum)
        snapshot.total_staked = str(total_staked)
        snapshot.reward_rate = str(reward_rate)
        if failed:
            snapshot.success = False
            snapshot.error = f"stake token read failed: {', '.join(failed)}"
        return snapshot

    def _latest_transfer(self, from_address: str, to_address: str) -> Optional[Dict[str, Any]]:
        """Newest transfer from -> to, via the Alchemy transfer index."""
        result = self.rpc.call("alchemy_getAssetTransfers", [{
            "fromBlock": "0x0",
            "toBlock": "latest",
            "fromAddress": from_address.lower(),
            "toAddress": to_address.lower(),
            "category": list(TRANSFER_CATEGORIES),
            "order": "desc",
            "maxCount": "0x1",
            "excludeZeroValue": True,
        }])
        transfers = (result or {}).get("transfers") or []
        return transfers[0] if transfers else None

    def _block_timestamp_ms(self, block_number: int) -> int:
        block = self.rpc.call("eth_getBlockByNumber", [hex(block_number), False])
        if not block:
            raise ValueError(f"Block {block_number} not found")
        return int(block["timestamp"], 16) * 1000

    def fetch_latest_reward_transfer(self, address: str) -> Optional[RewardTransfer]:
        """Most recent node reward paid to address (None if unknown).

        Needs an endpoint that serves alchemy_getAssetTransfers; public RPCs
        answer "method not found" and this returns None.
        """
        if not is_address(address):
            return None
        try:
            transfer = self._latest_transfer(self.reward_sender_address, address)
            if transfer is None:
                return None
            block_number = int(transfer["blockNum"], 16)
            return RewardTransfer(
                tx_hash=transfer["hash"],
                value=str(transfer.get("value") or "0"),
                block_number=block_number,
                timestamp=self._block_timestamp_ms(block_number),
            )
        except _LOOKUP_ERRORS:
            return None

    def fetch_last_stake(self, address: str) -> Optional[StakeTransaction]:
        """The wallet's latest transaction to the pool, if it was a stake.

        Returns None when the latest transaction is some other call (claim,
        unstake) or the lookup fails.
        """
        if not is_address(address):
            return None
        try:
            transfer = self._latest_transfer(address, self.staking_address)
            if transfer is None:
                return None
            tx = self.rpc.call("eth_getTransactionByHash", [transfer["hash"]])
            if not tx:
                return None
            parsed = parse_stake_input(tx.get("input") or tx.get("data"))
            if parsed is None:
                return None
            method, token_id, amount = parsed
            block_number = int(transfer["blockNum"], 16)
            return StakeTransaction(
                tx_hash=transfer["hash"],
                method=method,
                amount=str(amount),
                token_id=token_id,
                block_number=block_number,
                timestamp=self._block_timestamp_ms(block_number),
            )
        except _LOOKUP_ERRORS:
            return None

    def fetch_chain_state(self, address: str) -> ContractSnapshot:
        """Balance, stake tokens, staking counters and recent activity.

        The transfer lookups are informational: their failure never marks
        the snapshot incomplete.
        """
        balance = self.fetch_balance(address)
        token_ids, token_error = self._owned_token_ids(address)
        snapshot = self.fetch_stake_snapshot(address, token_ids)
        snapshot.balance = balance
        if token_error and snapshot.success:
            snapshot.success = False
            snapshot.error = f"stake token lookup failed: {token_error}"
        snapshot.latest_reward = self.fetch_latest_reward_transfer(address)
        snapshot.last_stake = self.fetch_last_stake(address)
        return snapshot
