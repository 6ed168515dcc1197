"""Phase 4 verification test for STAKE LIVE - CLI and live processor."""

import tempfile

from stake_live.cli.layout import calculate_layout
from stake_live.cli.panels import (
    EventPanel,
    OverviewPanel,
    SessionPanel,
    TokenPanel,
    format_duration,
    short_address,
)
from stake_live.cli.renderer import CLIRenderer
from stake_live.core.reward_accumulator import RewardAccumulator
from stake_live.core.session_clock import SessionClock
from stake_live.core.units import parse_units
from stake_live.logging.log_replay import replay_session, summarize_session
from stake_live.logging.session_logger import SessionLogger
from stake_live.models.events import (
    ContractSnapshot,
    PollResult,
    RewardTransfer,
    StakedToken,
    StakeTransaction,
)
from stake_live.orchestration.live_processor import LiveProcessor
from stake_live_main import build_demo_snapshots

WALLET = "0xa26762470fc8F22b4A504fedd83D2f878314A1D9"
T0 = 1_700_000_000_000
MINUTE = 60_000


def make_snapshot(earned: str, fetched_at: int = T0, token_count: int = 2) -> ContractSnapshot:
    tokens = [
        StakedToken(token_id=str(100 + i), staked_amount=str(parse_units("1000")),
                    reward_amount=str(parse_units(earned) // token_count))
        for i in range(token_count)
    ]
    return ContractSnapshot(
        address=WALLET,
        balance="250.75",
        token_ids=[t.token_id for t in tokens],
        staked_amount=str(parse_units("1000") * token_count),
        earned_rewards=str(parse_units(earned)),
        total_staked=str(parse_units("2750000")),
        staked_tokens=tokens,
        fetched_at=fetched_at,
    )


def make_result(earned_values, step_ms: int = MINUTE) -> PollResult:
    clock = SessionClock(replay_mode=True)
    clock.observe(T0)
    acc = RewardAccumulator(clock=clock)
    for i, earned in enumerate(earned_values):
        if i:
            clock.advance(step_ms)
        acc.update(parse_units(earned))
    return PollResult(
        snapshot=make_snapshot(earned_values[-1], clock.now()),
        stats=acc.get_stats(),
        polled_at=clock.now(),
        session_start=acc.state.session_start,
    )


class FakeFetcher:
    """Hands out scripted snapshots in order."""

    class _Rpc:
        rpc_url = "http://fake-rpc"

    def __init__(self, snapshots):
        self.rpc = self._Rpc()
        self.snapshots = list(snapshots)

    def fetch_chain_state(self, address):
        return self.snapshots.pop(0)


def make_processor(tmpdir, fetcher=None):
    clock = SessionClock(replay_mode=True)
    clock.observe(T0)
    logger = SessionLogger(address=WALLET, log_level="FULL", output_dir=tmpdir)
    processor = LiveProcessor(
        address=WALLET,
        fetcher=fetcher,
        session_logger=logger,
        cli_renderer=CLIRenderer(),
        refresh_rate=30,
        clock=clock,
    )
    return processor, clock, logger


def test_layout():
    print("=== Layout ===")
    large = calculate_layout(120, 50)
    assert (large["top_panel"], large["token_panel"], large["event_stream"]) == (14, 12, 14)
    medium = calculate_layout(120, 40)
    assert (medium["top_panel"], medium["token_panel"], medium["event_stream"]) == (12, 8, 10)
    small = calculate_layout(80, 24)
    assert (small["top_panel"], small["token_panel"], small["event_stream"]) == (10, 2, 4)
    assert small["cols"] == 80 and small["header"] == 4
    print("  Large/medium/small breakpoints: OK")


def test_formatting_helpers():
    print("=== Formatting Helpers ===")
    assert format_duration(45) == "45s"
    assert format_duration(185) == "3m 05s"
    assert format_duration(3727) == "1h 02m 07s"
    assert format_duration(-5) == "0s"
    assert short_address(WALLET) == "0xa267...A1D9"
    assert short_address("0x1234") == "0x1234"
    print("  format_duration / short_address: OK")


def test_overview_and_session_panels():
    print("=== Overview / Session Panels ===")
    result = make_result(["0", "0.0001"])

    lines = OverviewPanel().render(result, max_lines=12)
    assert len(lines) == 12
    text = "\n".join(lines)
    assert "WALLET: 0xa267...A1D9" in text
    assert "Balance: 250,7500 MYST" in text
    assert "Staked:       2.000,0000 MYST" in text
    assert "Stake Tokens: 2" in text
    assert "[OK]" in text
    assert " Node Reward:  -" in lines
    assert " Last Stake:   -" in lines
    print("  Overview lines: OK")

    result.snapshot.latest_reward = RewardTransfer(
        tx_hash="0x" + "5e" * 32, value="0.8421", block_number=61_000_000, timestamp=result.polled_at,
    )
    result.snapshot.last_stake = StakeTransaction(
        tx_hash="0x" + "c4" * 32, method="increaseStake", amount=str(parse_units("500")),
        token_id="1043", block_number=60_900_000, timestamp=result.polled_at,
    )
    lines = OverviewPanel().render(result, max_lines=12)
    assert lines[10].startswith(" Node Reward:  0,842100 MYST at "), lines[10]
    assert lines[11].startswith(" Last Stake:   500,0000 MYST -> #1043 at "), lines[11]
    result.snapshot.last_stake.token_id = None
    assert "-> new token at" in OverviewPanel().render(result)[11]
    print("  Node reward and last stake lines: OK")

    failed = PollResult(
        snapshot=ContractSnapshot(address=WALLET, success=False, error="down"),
        stats=result.stats,
        polled_at=result.polled_at,
    )
    assert "[FAILED]" in "\n".join(OverviewPanel().render(failed))
    print("  Failed poll flagged: OK")

    lines = SessionPanel().render(result, current_time=result.session_start + 185_000)
    text = "\n".join(lines)
    assert "Duration:  3m 05s" in text
    assert "Rewards:   0,000100 MYST" in text
    assert "Per minute: 0,000020 MYST" in text
    assert "Per day:    0,03 MYST" in text
    assert "CURRENT RATE (5m window)" in text
    print("  Session lines, duration ticks with current_time: OK")


def test_token_panel():
    print("=== Token Panel ===")
    lines = TokenPanel().render(make_snapshot("1", token_count=2), max_lines=8)
    assert lines[0] == " STAKE TOKENS"
    assert lines[1].startswith(" #100")
    assert "reward 0,500000 MYST" in lines[1]
    print("  Per-token rows: OK")

    lines = TokenPanel().render(make_snapshot("12", token_count=12), max_lines=8)
    assert len(lines) == 8
    assert lines[-1] == " (+6 more stake tokens)"
    print("  Overflow collapsed into a count: OK")

    lines = TokenPanel().render(ContractSnapshot(address=WALLET), max_lines=3)
    assert lines == [" STAKE TOKENS", " (none)", ""]
    print("  No tokens: OK")


def test_event_panel_caps():
    print("=== Event Panel ===")
    panel = EventPanel(buffer_size=3)
    for i in range(5):
        panel.add_info(f"message {i}", T0)
    lines = panel.render(max_lines=10)
    events = [line for line in lines[2:] if line]
    assert len(events) == 3
    assert events[-1].endswith("message 4")
    print("  Count cap keeps newest: OK")

    panel = EventPanel(buffer_size=10_000)
    for i in range(1000):
        panel.add_info("x" * 200, T0)
    assert panel._buffer_bytes <= 64_000
    print(f"  Byte cap: {panel._buffer_bytes} bytes retained: OK")

    panel = EventPanel()
    panel.add_rollback(T0, parse_units("1.5"), parse_units("0.0002"))
    panel.add_fetch_failure(ContractSnapshot(address=WALLET, fetched_at=T0, success=False, error="timeout"))
    text = "\n".join(panel.render())
    assert "CLAIM/RESET: earned 1,500000 -> 0,000200" in text
    assert "FETCH FAILED: timeout" in text
    print("  Rollback and failure lines: OK")


def test_render_frame():
    print("=== Render Frame ===")
    renderer = CLIRenderer()
    frame = renderer.render_frame(None, T0, address=WALLET, next_refresh_in=12.4)
    assert "STAKE LIVE | Wallet: 0xa267...A1D9" in frame
    assert "Next refresh: 12s" in frame
    assert "Waiting for first poll..." in frame
    print("  Before first poll: OK")

    result = make_result(["0", "0.0001"])
    renderer.add_info("hello", T0)
    frame = renderer.render_frame(result, result.session_start + 45_000, address=WALLET)
    assert "Session: 45s" in frame
    assert "Rewards:" in frame and "Balance:" in frame
    assert "EVENT STREAM" in frame and "hello" in frame

    lines = frame.split("\n")
    width = len(lines[0])
    assert all(len(line) == width for line in lines if line)
    print(f"  Full frame: {len(lines)} lines x {width} cols: OK")


def test_processor_demo_sequence():
    print("=== Processor Demo Sequence ===")
    snapshots = build_demo_snapshots(WALLET)
    step = parse_units("0.00035")

    with tempfile.TemporaryDirectory() as tmpdir:
        processor, clock, logger = make_processor(tmpdir)
        results = []
        baselines = []
        for snapshot in snapshots:
            clock.observe(snapshot.fetched_at)
            results.append(processor.process_snapshot(snapshot))
            baselines.append(processor.accumulator.state.baseline_cumulative)

        first = results[0]
        assert first.stats.session_total_units == 0
        assert baselines[0] == int(snapshots[0].earned_rewards)
        assert baselines[15] == baselines[0]
        assert baselines[-1] == parse_units("0.0002")
        print("  First good poll sets the baseline, claim moves it: OK")
        assert first.snapshot.latest_reward.value == "0.8421"
        assert first.snapshot.last_stake.token_id == "1043"
        print("  Demo polls carry node reward and last stake: OK")

        assert results[9].stats.session_total_units == 9 * step
        assert results[12].stats.session_total_units == 9 * step
        print("  Accrual then flat polls: OK")

        failed = results[13]
        assert failed.snapshot.success is False
        assert failed.snapshot.earned_rewards == snapshots[12].earned_rewards
        assert failed.snapshot.fetched_at == snapshots[13].fetched_at
        assert failed.stats.session_total_units == 9 * step
        print("  Failed poll keeps last good counters: OK")

        assert [r.rollback for r in results].count(True) == 1
        assert results[16].rollback
        assert results[16].stats.session_total_units == 0
        assert results[16].session_start == snapshots[16].fetched_at
        print("  Claim restarts the session: OK")

        last = results[-1]
        assert last.stats.session_total_units == 3 * step
        assert processor.last_result is last
        print(f"  Final session total: {last.stats.formatted.session_total}: OK")

        logger.close()
        events = replay_session(str(logger.filepath))
        summary = summarize_session(events)
        assert summary["polls"] == 20
        assert summary["rollbacks"] == 1
        assert summary["fetch_failures"] == 1
        print(f"  Log: {summary['polls']} polls, 1 rollback, 1 failure: OK")

        frame = processor.renderer.render_frame(last, clock.now(), address=WALLET)
        assert "CLAIM/RESET" in frame
        print("  Rollback shown in event stream: OK")


def test_failure_before_first_good_poll():
    print("=== Early Failure ===")
    with tempfile.TemporaryDirectory() as tmpdir:
        processor, clock, logger = make_processor(tmpdir)
        bad = ContractSnapshot(address=WALLET, fetched_at=T0, success=False, error="down")
        result = processor.process_snapshot(bad)
        assert result.snapshot is bad
        assert not processor.accumulator.is_initialized
        print("  Failure leaves accumulator uninitialized: OK")

        clock.advance(MINUTE)
        result = processor.process_snapshot(make_snapshot("5", clock.now()))
        assert processor.accumulator.state.baseline_cumulative == parse_units("5")
        assert result.stats.session_total_units == 0
        logger.close()
        print("  First good poll after failure sets baseline: OK")


def test_poll_and_reset():
    print("=== poll / reset_session ===")
    fetcher = FakeFetcher([
        make_snapshot("1", T0),
        make_snapshot("1.002", T0 + MINUTE),
        make_snapshot("7", T0 + 2 * MINUTE),
    ])
    with tempfile.TemporaryDirectory() as tmpdir:
        processor, clock, logger = make_processor(tmpdir, fetcher=fetcher)
        processor.poll()
        clock.advance(MINUTE)
        result = processor.poll()
        assert result.stats.session_total_units == parse_units("0.002")
        print("  poll() fetches and accumulates: OK")

        processor.reset_session()
        assert not processor.accumulator.is_initialized
        clock.advance(MINUTE)
        result = processor.poll()
        assert processor.accumulator.state.baseline_cumulative == parse_units("7")
        assert result.rollback is False
        print("  reset_session() re-baselines on the next poll: OK")

        processor.shutdown()  # Not running: no-op
        logger.close()

    no_fetcher = LiveProcessor(
        address=WALLET, fetcher=None,
        session_logger=None, cli_renderer=CLIRenderer(),
    )
    try:
        no_fetcher.poll()
    except RuntimeError:
        print("  poll() without fetcher raises: OK")
    else:
        raise AssertionError("poll() without fetcher did not raise")


def test_demo_snapshots():
    print("=== Demo Snapshots ===")
    snapshots = build_demo_snapshots(WALLET, interval_ms=30_000)
    assert len(snapshots) == 20
    assert sum(1 for s in snapshots if not s.success) == 1
    assert all(b.fetched_at - a.fetched_at == 30_000 for a, b in zip(snapshots, snapshots[1:]))

    good = [int(s.earned_rewards) for s in snapshots if s.success]
    drops = sum(1 for a, b in zip(good, good[1:]) if b < a)
    assert drops == 1
    for s in snapshots:
        if s.success:
            assert sum(int(t.reward_amount) for t in s.staked_tokens) == int(s.earned_rewards)
    print("  20 polls, 1 failure, 1 claim, token rewards add up: OK")


if __name__ == "__main__":
    test_layout()
    test_formatting_helpers()
    test_overview_and_session_panels()
    test_token_panel()
    test_event_panel_caps()
    test_render_frame()
    test_processor_demo_sequence()
    test_failure_before_first_good_poll()
    test_poll_and_reset()
    test_demo_snapshots()
    print("\n*** ALL PHASE 4 TESTS PASSED ***")
