"""
Tests for Domain Models

Комплексное тестирование Pydantic V2 моделей:
- EpochRecord (lifecycle: observe → bootstrap → finalize)
- ParticipantEpochEntry
- ClaimRecord / PointsBreakdown
- LedgerSnapshot / LedgerEvent

Покрывает:
- Создание и валидация моделей
- Cross-field инварианты (model_validator)
- Immutability (frozen=True)
- Явный None вместо нулевого sentinel
"""

import pytest
from pydantic import ValidationError

from src.core.domain import (
    SCALE,
    ClaimRecord,
    EpochRecord,
    LedgerEvent,
    LedgerEventKind,
    LedgerSnapshot,
    ParticipantEpochEntry,
    PointsBreakdown,
    Strategy,
)


# =============================================================================
# EPOCH RECORD
# =============================================================================


class TestEpochRecord:
    """Тесты EpochRecord."""

    def test_default_record_is_unset(self):
        record = EpochRecord(epoch_index=3)

        assert record.start_price is None
        assert record.end_price is None
        assert record.peak is None
        assert record.low is None
        assert not record.finalized
        assert not record.is_bootstrapped

    def test_observe_price_sets_peak_and_low_from_unset(self):
        record = EpochRecord(epoch_index=0).observe_price(SCALE)

        assert record.peak == SCALE
        assert record.low == SCALE

    def test_observe_price_tracks_extremes(self):
        record = EpochRecord(epoch_index=0).observe_price(SCALE)
        record = record.observe_price(2 * SCALE)
        record = record.observe_price(SCALE // 2)
        record = record.observe_price(SCALE)

        assert record.peak == 2 * SCALE
        assert record.low == SCALE // 2

    def test_zero_price_is_a_real_low(self):
        """Цена 0 — реальный low, а не 'не задан'."""
        record = EpochRecord(epoch_index=0).observe_price(0)
        assert record.low == 0

        record = record.observe_price(SCALE)
        assert record.low == 0
        assert record.peak == SCALE

    def test_bootstrap(self):
        record = EpochRecord(epoch_index=1).observe_price(SCALE).bootstrap(3 * SCALE)

        assert record.is_bootstrapped
        assert record.start_price == 3 * SCALE
        assert record.peak == 3 * SCALE
        assert record.low == 3 * SCALE

    def test_finalize(self):
        record = EpochRecord(epoch_index=2).bootstrap(SCALE).finalize(2 * SCALE)

        assert record.finalized
        assert record.end_price == 2 * SCALE
        assert record.start_price == SCALE

    def test_lifecycle_returns_new_instances(self):
        original = EpochRecord(epoch_index=0)
        observed = original.observe_price(SCALE)

        assert original.peak is None
        assert observed is not original

    def test_finalized_requires_end_price(self):
        with pytest.raises(ValidationError):
            EpochRecord(epoch_index=0, finalized=True)

    def test_live_record_cannot_have_end_price(self):
        with pytest.raises(ValidationError):
            EpochRecord(epoch_index=0, end_price=SCALE)

    def test_peak_below_low_rejected(self):
        with pytest.raises(ValidationError):
            EpochRecord(epoch_index=0, peak=SCALE, low=2 * SCALE)

    def test_negative_index_rejected(self):
        with pytest.raises(ValidationError):
            EpochRecord(epoch_index=-1)

    def test_frozen(self):
        record = EpochRecord(epoch_index=0)
        with pytest.raises(ValidationError):
            record.peak = SCALE


# =============================================================================
# PARTICIPANT ENTRY
# =============================================================================


class TestParticipantEpochEntry:
    """Тесты ParticipantEpochEntry."""

    def test_create(self):
        entry = ParticipantEpochEntry(
            participant="alice",
            epoch_index=4,
            shares=10_000_000,
            entry_price=SCALE,
            strategy=Strategy.BALANCED,
        )

        assert entry.shares == 10_000_000
        assert entry.strategy == Strategy.BALANCED

    def test_strategy_from_string(self):
        entry = ParticipantEpochEntry(
            participant="alice",
            epoch_index=0,
            shares=1,
            entry_price=SCALE,
            strategy="AGGRESSIVE",
        )
        assert entry.strategy == Strategy.AGGRESSIVE

    def test_empty_participant_rejected(self):
        with pytest.raises(ValidationError):
            ParticipantEpochEntry(
                participant="",
                epoch_index=0,
                shares=1,
                entry_price=SCALE,
                strategy=Strategy.BALANCED,
            )

    def test_negative_shares_rejected(self):
        with pytest.raises(ValidationError):
            ParticipantEpochEntry(
                participant="alice",
                epoch_index=0,
                shares=-1,
                entry_price=SCALE,
                strategy=Strategy.BALANCED,
            )

    def test_unknown_strategy_rejected(self):
        with pytest.raises(ValidationError):
            ParticipantEpochEntry(
                participant="alice",
                epoch_index=0,
                shares=1,
                entry_price=SCALE,
                strategy="YOLO",
            )


# =============================================================================
# CLAIM
# =============================================================================


class TestClaimModels:
    """Тесты ClaimRecord и PointsBreakdown."""

    def test_claim_record(self):
        claim = ClaimRecord(
            participant="alice",
            epoch_index=0,
            strategy=Strategy.CONSERVATIVE,
            points=5,
            cumulative_points=12,
        )
        assert claim.cumulative_points == 12

    def test_negative_points_rejected(self):
        with pytest.raises(ValidationError):
            ClaimRecord(
                participant="alice",
                epoch_index=0,
                strategy=Strategy.CONSERVATIVE,
                points=-1,
                cumulative_points=0,
            )

    def test_breakdown_requires_positive_multiplier(self):
        with pytest.raises(ValidationError):
            PointsBreakdown(roi=0, drawdown=0, multiplier=0, points=0)


# =============================================================================
# LEDGER STATE
# =============================================================================


class TestLedgerState:
    """Тесты LedgerSnapshot и LedgerEvent."""

    def _snapshot_data(self, **overrides):
        data = {
            "total_assets": 20_000_000,
            "secondary_value": 4_000_000,
            "total_shares": 20_000_000,
            "share_price": SCALE,
            "weight_conservative": 10_000_000,
            "weight_balanced": 10_000_000,
            "weight_aggressive": 0,
            "target_allocation_bps": 3500,
            "current_epoch": 2,
            "last_finalized_epoch": 2,
        }
        data.update(overrides)
        return data

    def test_snapshot_valid(self):
        snapshot = LedgerSnapshot(**self._snapshot_data())
        assert snapshot.total_shares == 20_000_000

    def test_snapshot_weight_mismatch_rejected(self):
        with pytest.raises(ValidationError):
            LedgerSnapshot(**self._snapshot_data(weight_aggressive=1))

    def test_snapshot_target_range(self):
        with pytest.raises(ValidationError):
            LedgerSnapshot(**self._snapshot_data(target_allocation_bps=10_001))

    def test_event_defaults(self):
        event = LedgerEvent(kind=LedgerEventKind.EPOCH_FINALIZED, epoch_index=3, price=SCALE)

        assert event.participant is None
        assert event.amount is None
        assert event.details == ""

    def test_event_json_roundtrip_keeps_ints(self):
        event = LedgerEvent(
            kind=LedgerEventKind.JOINED,
            epoch_index=0,
            participant="alice",
            amount=10**30,
            shares=10**30,
            price=SCALE,
            strategy=Strategy.AGGRESSIVE,
        )
        restored = LedgerEvent.model_validate_json(event.model_dump_json())

        assert restored == event
        assert restored.amount == 10**30
