"""
Contract Validation Module

Модуль для валидации JSON контрактов состояния пула (epoch-таблицы,
participant entries, claim records, ledger snapshot/events).
"""

from .validators import (
    ClaimRecordValidator,
    ContractValidator,
    EpochRecordValidator,
    LedgerEventValidator,
    LedgerSnapshotValidator,
    ParticipantEntryValidator,
    SchemaLoader,
    get_schema_loader,
    validate_claim_record,
    validate_epoch_record,
    validate_ledger_event,
    validate_ledger_snapshot,
    validate_participant_entry,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "EpochRecordValidator",
    "ParticipantEntryValidator",
    "ClaimRecordValidator",
    "LedgerSnapshotValidator",
    "LedgerEventValidator",
    # Functions
    "get_schema_loader",
    "validate_epoch_record",
    "validate_participant_entry",
    "validate_claim_record",
    "validate_ledger_snapshot",
    "validate_ledger_event",
]
