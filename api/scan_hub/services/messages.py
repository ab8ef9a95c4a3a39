# scan_hub/services/messages.py
"""
Localized status messages for the scan log (uk/en).
"""
from __future__ import annotations
from typing import Dict, Optional

from scan_hub.models import AppLanguage
from scan_hub.services.scan_processor import ScanError

MESSAGES: Dict[AppLanguage, Dict[str, str]] = {
    AppLanguage.UK: {
        "ok": "Додано",
        "invalid_checksum": "Невірна контрольна сума EAN-13",
        "invalid_prefix": "Префікс коду не дозволений",
        "field_out_of_range": "Поле виходить за межі коду",
        "required_field_empty": "Поле «{field}» порожнє",
        "field_not_numeric": "Поле «{field}» не є числом",
        "scan_error": "Помилка сканування",
    },
    AppLanguage.EN: {
        "ok": "Added",
        "invalid_checksum": "Invalid EAN-13 checksum",
        "invalid_prefix": "Code prefix is not allowed",
        "field_out_of_range": "Field lies outside the code",
        "required_field_empty": "Field \"{field}\" is empty",
        "field_not_numeric": "Field \"{field}\" is not a number",
        "scan_error": "Scan failed",
    },
}


def message_for(key: str, language: AppLanguage = AppLanguage.UK, field_title: Optional[str] = None) -> str:
    table = MESSAGES.get(language, MESSAGES[AppLanguage.UK])
    template = table.get(key, table["scan_error"])
    return template.format(field=field_title or "")


def success_message(language: AppLanguage = AppLanguage.UK) -> str:
    return message_for("ok", language)


def error_message(error: ScanError, language: AppLanguage = AppLanguage.UK) -> str:
    return message_for(error.error_code, language, error.field_title)
