"""
JSON Schema Contract Validators

Модуль для валидации JSON-представлений состояния пула согласно формальным
JSON Schema контрактам. Использует библиотеку jsonschema (Draft 2020-12).

Схемы (contracts/schema/):
- epoch_record.json — epoch-таблица
- participant_epoch_entry.json — таблица participant entries
- claim_record.json — записи claim очков
- ledger_snapshot.json — агрегатное состояние ShareLedger
- ledger_event.json — журнал событий ShareLedger
"""

import json
from pathlib import Path
from typing import Any, Dict

import jsonschema
from jsonschema import Draft202012Validator


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """
    Загрузчик JSON Schema файлов.

    Автоматически находит схемы в contracts/schema/ относительно корня проекта.
    """

    def __init__(self, schema_dir: Path | None = None):
        # Корень проекта: 4 уровня вверх от этого файла
        self._schema_dir = schema_dir or (
            Path(__file__).parent.parent.parent.parent / "contracts" / "schema"
        )
        if not self._schema_dir.exists():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")

        # Кэш загруженных схем
        self._schemas: Dict[str, Dict[str, Any]] = {}

    @property
    def schema_dir(self) -> Path:
        return self._schema_dir

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Загрузка JSON Schema файла.

        Args:
            schema_name: Имя схемы без расширения (например, 'epoch_record')

        Returns:
            Загруженная схема как dict

        Raises:
            FileNotFoundError: Если файл схемы не найден
            ValueError: Если файл не является валидной JSON Schema
        """
        if schema_name in self._schemas:
            return self._schemas[schema_name]

        schema_path = self._schema_dir / f"{schema_name}.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")

        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)

        # Meta-validation самой схемы
        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {schema_name}.json: {e}")

        self._schemas[schema_name] = schema
        return schema


_SCHEMA_LOADER: SchemaLoader | None = None


def get_schema_loader() -> SchemaLoader:
    """Глобальный экземпляр загрузчика (создаётся при первом обращении)."""
    global _SCHEMA_LOADER
    if _SCHEMA_LOADER is None:
        _SCHEMA_LOADER = SchemaLoader()
    return _SCHEMA_LOADER


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """
    Базовый класс для валидаторов контрактов.

    Инкапсулирует логику валидации данных против JSON Schema.
    """

    def __init__(self, schema_name: str):
        self.schema_name = schema_name
        self.schema = get_schema_loader().load_schema(schema_name)
        self.validator = Draft202012Validator(self.schema)

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Валидация данных против схемы.

        Raises:
            ValidationError: Если данные не соответствуют схеме
        """
        self.validator.validate(data)

    def is_valid(self, data: Dict[str, Any]) -> bool:
        """Проверка валидности данных без exception."""
        return self.validator.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]):
        """Итератор по всем ошибкам валидации."""
        return self.validator.iter_errors(data)


class EpochRecordValidator(ContractValidator):
    def __init__(self):
        super().__init__("epoch_record")


class ParticipantEntryValidator(ContractValidator):
    def __init__(self):
        super().__init__("participant_epoch_entry")


class ClaimRecordValidator(ContractValidator):
    def __init__(self):
        super().__init__("claim_record")


class LedgerSnapshotValidator(ContractValidator):
    def __init__(self):
        super().__init__("ledger_snapshot")


class LedgerEventValidator(ContractValidator):
    def __init__(self):
        super().__init__("ledger_event")


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def validate_epoch_record(data: Dict[str, Any]) -> None:
    """
    Валидация epoch_record данных.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    EpochRecordValidator().validate(data)


def validate_participant_entry(data: Dict[str, Any]) -> None:
    """
    Валидация participant_epoch_entry данных.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    ParticipantEntryValidator().validate(data)


def validate_claim_record(data: Dict[str, Any]) -> None:
    """
    Валидация claim_record данных.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    ClaimRecordValidator().validate(data)


def validate_ledger_snapshot(data: Dict[str, Any]) -> None:
    """
    Валидация ledger_snapshot данных.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    LedgerSnapshotValidator().validate(data)


def validate_ledger_event(data: Dict[str, Any]) -> None:
    """
    Валидация ledger_event данных.

    Raises:
        ValidationError: Если данные не соответствуют схеме
    """
    LedgerEventValidator().validate(data)

