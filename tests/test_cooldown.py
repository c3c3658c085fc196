import asyncio

from dmrelay.relay.cooldown import CooldownSweeper, CooldownTracker


def test_unknown_user_is_allowed() -> None:
    tracker = CooldownTracker(cooldown_ms=10_000)
    check = tracker.check("user-1", now=1_000)
    assert check.allowed is True
    assert check.remaining_seconds == 0


def test_arm_sets_expiry_to_now_plus_period() -> None:
    tracker = CooldownTracker(cooldown_ms=10_000)
    expiry = tracker.arm("user-1", now=50_000)
    assert expiry == 60_000
    assert tracker.expiry_for("user-1") == 60_000


def test_denied_check_rounds_remaining_seconds_up() -> None:
    tracker = CooldownTracker(cooldown_ms=10_000)
    tracker.arm("user-1", now=0)

    assert tracker.check("user-1", now=3_000).remaining_seconds == 7
    check = tracker.check("user-1", now=9_001)
    assert check.allowed is False
    assert check.remaining_seconds == 1
    assert tracker.check("user-1", now=9_999).remaining_seconds == 1


def test_check_allows_once_expiry_is_reached() -> None:
    tracker = CooldownTracker(cooldown_ms=10_000)
    tracker.arm("user-1", now=0)
    assert tracker.check("user-1", now=10_000).allowed is True


def test_users_are_tracked_independently() -> None:
    tracker = CooldownTracker(cooldown_ms=10_000)
    tracker.arm("user-1", now=0)
    assert tracker.check("user-2", now=1).allowed is True


def test_release_allows_immediate_retry() -> None:
    tracker = CooldownTracker(cooldown_ms=10_000)
    tracker.arm("user-1", now=0)
    tracker.release("user-1")
    assert tracker.check("user-1", now=1).allowed is True
    tracker.release("never-seen")


def test_sweep_only_removes_expired_entries() -> None:
    tracker = CooldownTracker(cooldown_ms=10_000)
    tracker.arm("old", now=0)
    tracker.arm("fresh", now=5_000)

    assert tracker.sweep(now=10_000) == 1
    assert tracker.expiry_for("old") is None
    assert tracker.expiry_for("fresh") == 15_000


def test_repeated_sweep_at_same_time_is_a_no_op() -> None:
    tracker = CooldownTracker(cooldown_ms=10_000)
    tracker.arm("a", now=0)
    tracker.arm("b", now=8_000)
    tracker.sweep(now=12_000)
    snapshot = (len(tracker), tracker.expiry_for("b"))

    assert tracker.sweep(now=12_000) == 0
    assert (len(tracker), tracker.expiry_for("b")) == snapshot
    assert tracker.sweep(now=17_999) == 0
    assert tracker.sweep(now=18_000) == 1
    assert len(tracker) == 0


async def test_sweeper_reaps_entries_in_background() -> None:
    tracker = CooldownTracker(cooldown_ms=0)
    tracker.arm("user-1")
    sweeper = CooldownSweeper(tracker, interval_ms=10)

    await sweeper.start()
    assert sweeper.is_running
    await asyncio.sleep(0.05)
    sweeper.stop()

    assert len(tracker) == 0
    assert sweeper.is_running is False
