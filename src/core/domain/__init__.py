"""
Domain models and value objects.

Contains fundamental domain entities: Strategy, EpochRecord, ParticipantEpochEntry,
ClaimRecord, LedgerSnapshot and fixed-point units.
"""

from src.core.domain.claim import ClaimRecord, PointsBreakdown
from src.core.domain.epoch import EpochRecord, ParticipantEpochEntry
from src.core.domain.ledger_state import LedgerEvent, LedgerEventKind, LedgerSnapshot
from src.core.domain.strategy import Strategy
from src.core.domain.units import (
    BPS_DENOMINATOR,
    EPOCH_DURATION_SEC,
    MAX_EPOCH_CATCHUP,
    MIN_DEPOSIT,
    SCALE,
    bps_to_fixed,
    compute_share_price,
    to_fixed,
)

__all__ = [
    # Units module
    "SCALE",
    "BPS_DENOMINATOR",
    "MIN_DEPOSIT",
    "EPOCH_DURATION_SEC",
    "MAX_EPOCH_CATCHUP",
    "to_fixed",
    "bps_to_fixed",
    "compute_share_price",
    # Strategy
    "Strategy",
    # Epoch models
    "EpochRecord",
    "ParticipantEpochEntry",
    # Claim models
    "ClaimRecord",
    "PointsBreakdown",
    # Ledger state
    "LedgerEvent",
    "LedgerEventKind",
    "LedgerSnapshot",
]
