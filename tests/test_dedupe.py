"""Tests for the process-local dedupe guard."""

from __future__ import annotations

from notification_center.application.use_cases.notifications import DedupeGuard, dedupe_scope_key
from notification_center.domain.entities import TenantContext


def test_scope_key_joins_tenant_and_dedupe_key() -> None:
    context = TenantContext("client-1", "condo-1")

    assert dedupe_scope_key(context, "invoice:42") == "client-1:condo-1:invoice:42"


def test_repeated_key_inside_window_is_skipped(clock) -> None:
    guard = DedupeGuard(15.0, clock=clock)

    assert guard.should_skip("c:k:event") is False
    clock.advance(1)
    assert guard.should_skip("c:k:event") is True


def test_key_is_accepted_again_after_window(clock) -> None:
    guard = DedupeGuard(15.0, clock=clock)

    guard.should_skip("c:k:event")
    clock.advance(15.5)

    assert guard.should_skip("c:k:event") is False


def test_skipped_call_does_not_extend_window(clock) -> None:
    """Only accepted emissions move the reference timestamp."""

    guard = DedupeGuard(15.0, clock=clock)

    guard.should_skip("c:k:event")
    clock.advance(10)
    assert guard.should_skip("c:k:event") is True
    clock.advance(6)
    assert guard.should_skip("c:k:event") is False


def test_scope_keys_are_independent(clock) -> None:
    guard = DedupeGuard(15.0, clock=clock)

    assert guard.should_skip("client-1:condo-1:event") is False
    assert guard.should_skip("client-1:condo-2:event") is False


def test_forget_releases_the_key(clock) -> None:
    guard = DedupeGuard(15.0, clock=clock)

    guard.should_skip("c:k:event")
    guard.forget("c:k:event")
    guard.forget("c:k:missing")

    assert guard.should_skip("c:k:event") is False


def test_expired_keys_are_evicted(clock) -> None:
    """Distinct keys spread over time do not accumulate."""

    guard = DedupeGuard(15.0, clock=clock)

    for index in range(10_000):
        guard.should_skip(f"c:k:event-{index}")
        clock.advance(20)

    assert len(guard) == 1


def test_only_keys_inside_window_are_kept(clock) -> None:
    guard = DedupeGuard(15.0, clock=clock)

    guard.should_skip("c:k:old")
    clock.advance(10)
    guard.should_skip("c:k:recent")
    clock.advance(6)
    guard.should_skip("c:k:new")

    assert len(guard) == 2
    assert guard.should_skip("c:k:recent") is True
    assert guard.should_skip("c:k:old") is False
