from datetime import datetime

import pytest

from status_timeline.config import ActionVocabulary
from status_timeline.models import LogEvent

OPERATOR = "2964-Мебагишвили Теона 5072 ГП"

OPEN = "Открытие заказа"
CLOSE = "Закрытие заказа"
IN_PROGRESS = "Статус в работе"
POST_PROCESSING = "Статус пост-обработка"


def make_event(when: str, action: str, operator: str = "OpA", order_id: str = "") -> LogEvent:
    return LogEvent(
        timestamp=datetime.strptime(when, "%Y-%m-%d %H:%M:%S"),
        action=ActionVocabulary().classify(action),
        operator=operator,
        order_id=order_id,
        raw_timestamp=when,
    )


def tab_log(*rows: tuple[str, ...]) -> str:
    return "\n".join("\t".join(row) for row in rows)


@pytest.fixture
def order_log() -> str:
    return tab_log(
        ("1", OPEN, "OpA", "100", "2024-01-01 10:00:00"),
        ("2", CLOSE, "OpA", "100", "2024-01-01 10:30:00"),
        ("3", IN_PROGRESS, "OpA", "", "2024-01-01 11:00:00"),
    )


@pytest.fixture
def post_processing_log() -> str:
    return tab_log(
        ("1", OPEN, "OpA", "100", "2024-01-01 10:00:00"),
        ("2", POST_PROCESSING, "OpA", "", "2024-01-01 10:05:00"),
        ("3", CLOSE, "OpA", "100", "2024-01-01 10:30:00"),
        ("4", OPEN, "OpA", "101", "2024-01-01 11:00:00"),
    )
