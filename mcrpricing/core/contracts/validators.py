"""
JSON Schema Contract Validators

Модуль для валидации JSON данных согласно формальным JSON Schema контрактам.
Использует библиотеку jsonschema для проверки соответствия данных схемам.

Схемы (mcrpricing/core/contracts/schema/):
- capital_report.json — отчёт о достаточности капитала
- purchase_request.json — запрос покупки токена
- calibration.json — калибровка кривой
- engine_settings.json — настройки движка
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

    Схемы лежат в каталоге schema/ рядом с этим модулем.
    """

    def __init__(self, schema_dir: Path | None = None):
        self._schema_dir = schema_dir or Path(__file__).parent / "schema"
        if not self._schema_dir.exists():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")

        # Кэш загруженных схем
        self._schemas: Dict[str, Dict[str, Any]] = {}

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Загрузка JSON Schema файла.

        Args:
            schema_name: Имя схемы без расширения (например, 'capital_report')

        Returns:
            Загруженная схема как dict

        Raises:
            FileNotFoundError: Если файл схемы не найден
            ValueError: Если схема не проходит meta-validation
        """
        if schema_name in self._schemas:
            return self._schemas[schema_name]

        schema_path = self._schema_dir / f"{schema_name}.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")

        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)

        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {schema_name}.json: {e}") from e

        self._schemas[schema_name] = schema
        return schema


# Глобальный экземпляр загрузчика
_SCHEMA_LOADER = SchemaLoader()


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """
    Базовый класс для валидаторов контрактов.

    Инкапсулирует логику валидации данных против JSON Schema.
    """

    schema_name: str = ""

    def __init__(self):
        self.schema = _SCHEMA_LOADER.load_schema(self.schema_name)
        self.validator = Draft202012Validator(self.schema)

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Валидация данных против схемы.

        Raises:
            jsonschema.ValidationError: Если данные не соответствуют схеме
        """
        self.validator.validate(data)

    def is_valid(self, data: Dict[str, Any]) -> bool:
        """Проверка валидности данных без exception."""
        return self.validator.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]):
        """Итератор по всем ошибкам валидации."""
        return self.validator.iter_errors(data)


class CapitalReportValidator(ContractValidator):
    """Валидатор отчёта о капитале."""

    schema_name = "capital_report"


class PurchaseRequestValidator(ContractValidator):
    """Валидатор запроса покупки."""

    schema_name = "purchase_request"


class CalibrationValidator(ContractValidator):
    """Валидатор запроса калибровки."""

    schema_name = "calibration"


class EngineSettingsValidator(ContractValidator):
    """Валидатор настроек движка."""

    schema_name = "engine_settings"


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def validate_capital_report(data: Dict[str, Any]) -> None:
    """
    Валидация capital_report данных.

    Raises:
        jsonschema.ValidationError: Если данные не соответствуют схеме
    """
    CapitalReportValidator().validate(data)


def validate_purchase_request(data: Dict[str, Any]) -> None:
    """
    Валидация purchase_request данных.

    Raises:
        jsonschema.ValidationError: Если данные не соответствуют схеме
    """
    PurchaseRequestValidator().validate(data)


def validate_calibration(data: Dict[str, Any]) -> None:
    """
    Валидация calibration данных.

    Raises:
        jsonschema.ValidationError: Если данные не соответствуют схеме
    """
    CalibrationValidator().validate(data)


def validate_engine_settings(data: Dict[str, Any]) -> None:
    """
    Валидация engine_settings данных.

    Raises:
        jsonschema.ValidationError: Если данные не соответствуют схеме
    """
    EngineSettingsValidator().validate(data)
