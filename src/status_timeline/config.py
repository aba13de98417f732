"""Configuration models and helpers for parsing and attribution."""

from __future__ import annotations

import logging
import math
import re
import tomllib
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .models import Action, ActionKind
from .normalization import is_record_number, parse_timestamp
from .paths import get_config_path

logger = logging.getLogger(__name__)

ALL_OPERATORS = "__ALL__"


class StatusMode(str, Enum):
    TRACK = "none"
    STATUS_LINES_ONLY = "statusLinesOnly"

    @classmethod
    def parse(cls, value: object) -> "StatusMode":
        """Map user input to a mode; anything unrecognised tracks status."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip()
        for mode in cls:
            if text.lower() in (mode.value.lower(), mode.name.lower()):
                return mode
        return cls.TRACK


@dataclass(frozen=True, slots=True)
class ActionVocabulary:
    """Fixed action labels emitted by the ticketing UI."""

    status_prefixes: tuple[str, ...] = ("Статус", "Status")
    order_opened: str = "Открытие заказа"
    order_closed: str = "Закрытие заказа"
    in_progress: str = "Статус в работе"
    post_processing: str = "Статус пост-обработка"

    def classify(self, label: str) -> Action:
        if label == self.order_opened:
            return Action(ActionKind.ORDER_OPENED, label)
        if label == self.order_closed:
            return Action(ActionKind.ORDER_CLOSED, label)
        if label.startswith(self.status_prefixes):
            return Action(ActionKind.STATUS_CHANGE, label)
        return Action(ActionKind.OTHER, label)


@dataclass(frozen=True, slots=True)
class ChromeFilter:
    """Denylist for pagination controls, banners and other UI noise.

    All entries are compared case-insensitively against the stripped line.
    """

    prefixes: tuple[str, ...] = ("показать",)
    substrings: tuple[str, ...] = ("записей с", "version")
    exact: tuple[str, ...] = ("действие", "id заказа", "предыдущая", "следующая")
    drop_lone_numbers: bool = True

    def matches(self, line: str) -> bool:
        lowered = line.strip().lower()
        if any(lowered.startswith(prefix.lower()) for prefix in self.prefixes):
            return True
        if any(substring.lower() in lowered for substring in self.substrings):
            return True
        if any(lowered == entry.lower() for entry in self.exact):
            return True
        return self.drop_lone_numbers and is_record_number(lowered)

    def extended(
        self,
        prefixes: Iterable[str] = (),
        substrings: Iterable[str] = (),
        exact: Iterable[str] = (),
    ) -> "ChromeFilter":
        return replace(
            self,
            prefixes=self.prefixes + tuple(prefixes),
            substrings=self.substrings + tuple(substrings),
            exact=self.exact + tuple(exact),
        )


_HEADER_PATTERN = re.compile(
    r"id\s+(действие|action)\s+(оператор|operator)\s+(заказ|order)\s+(дата|date)",
    re.IGNORECASE,
)


@dataclass(frozen=True, slots=True)
class ParserSettings:
    chrome: ChromeFilter = field(default_factory=ChromeFilter)
    header_pattern: re.Pattern[str] = _HEADER_PATTERN
    vocabulary: ActionVocabulary = field(default_factory=ActionVocabulary)


@dataclass(slots=True)
class AttributionSettings:
    """Explicit per-run configuration for the attribution engine."""

    operator_filter: str = ALL_OPERATORS
    window_start: Optional[datetime] = None
    window_end: Optional[datetime] = None
    min_gap: timedelta = timedelta(0)
    gap_warning: timedelta = timedelta(0)
    mode_b: bool = True
    deduplicate: bool = False
    status_mode: StatusMode = StatusMode.TRACK
    vocabulary: ActionVocabulary = field(default_factory=ActionVocabulary)

    @property
    def filters_operator(self) -> bool:
        return self.operator_filter != ALL_OPERATORS

    @classmethod
    def from_inputs(
        cls,
        operator: Optional[str] = None,
        window_start: object = None,
        window_end: object = None,
        min_gap_seconds: object = None,
        gap_warn_minutes: object = None,
        mode_b: object = True,
        deduplicate: object = False,
        status_mode: object = None,
        vocabulary: Optional[ActionVocabulary] = None,
    ) -> "AttributionSettings":
        """Build settings from raw form values, coercing anything malformed."""
        operator = (operator or "").strip()
        return cls(
            operator_filter=operator or ALL_OPERATORS,
            window_start=_coerce_instant(window_start),
            window_end=_coerce_instant(window_end),
            min_gap=_coerce_span(min_gap_seconds, "seconds"),
            gap_warning=_coerce_span(gap_warn_minutes, "minutes"),
            mode_b=coerce_flag(mode_b, default=True),
            deduplicate=coerce_flag(deduplicate, default=False),
            status_mode=StatusMode.parse(status_mode),
            vocabulary=vocabulary or ActionVocabulary(),
        )


def coerce_non_negative(value: object, default: float = 0.0) -> float:
    """Return ``value`` as a finite non-negative float, else ``default``."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number) or number < 0:
        return default
    return number


_TRUE_WORDS = frozenset({"1", "true", "yes", "on", "y"})
_FALSE_WORDS = frozenset({"0", "false", "no", "off", "n", ""})


def coerce_flag(value: object, default: bool) -> bool:
    """Interpret checkbox and form values; unknown words give ``default``."""
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return value != 0
    text = str(value).strip().lower()
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    return default


def _coerce_span(value: object, unit: str) -> timedelta:
    try:
        return timedelta(**{unit: coerce_non_negative(value)})
    except OverflowError:
        return timedelta(0)


def _coerce_instant(value: object) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        return parse_timestamp(value)
    return None


class SettingsFileError(ValueError):
    """Raised when the settings file exists but cannot be used."""


class ParserSection(BaseModel):
    extra_chrome_prefixes: list[str] = []
    extra_chrome_substrings: list[str] = []
    extra_chrome_exact: list[str] = []

    model_config = ConfigDict(extra="ignore")


class AttributionSection(BaseModel):
    operator: Optional[str] = None
    min_gap_seconds: float = 0.0
    gap_warn_minutes: float = 0.0
    mode_b: bool = True
    deduplicate: bool = False
    status_mode: StatusMode = StatusMode.TRACK

    model_config = ConfigDict(extra="ignore")

    @field_validator("min_gap_seconds", "gap_warn_minutes", mode="before")
    @classmethod
    def _coerce_number(cls, value: Any) -> float:
        return coerce_non_negative(value)

    @field_validator("status_mode", mode="before")
    @classmethod
    def _coerce_status_mode(cls, value: Any) -> StatusMode:
        return StatusMode.parse(value)


class SettingsFile(BaseModel):
    """Contents of the optional ``settings.toml``."""

    parser: ParserSection = ParserSection()
    attribution: AttributionSection = AttributionSection()

    model_config = ConfigDict(extra="ignore")

    def parser_settings(self) -> ParserSettings:
        chrome = ChromeFilter().extended(
            prefixes=self.parser.extra_chrome_prefixes,
            substrings=self.parser.extra_chrome_substrings,
            exact=self.parser.extra_chrome_exact,
        )
        return ParserSettings(chrome=chrome)

    def attribution_settings(
        self,
        *,
        operator: Optional[str] = None,
        window_start: Optional[str] = None,
        window_end: Optional[str] = None,
        min_gap_seconds: Optional[str] = None,
        gap_warn_minutes: Optional[str] = None,
        mode_b: Optional[bool] = None,
        deduplicate: Optional[bool] = None,
        status_mode: Optional[str] = None,
    ) -> AttributionSettings:
        """Merge explicit overrides on top of the file's defaults."""
        defaults = self.attribution
        return AttributionSettings.from_inputs(
            operator=operator if operator is not None else defaults.operator,
            window_start=window_start,
            window_end=window_end,
            min_gap_seconds=(
                min_gap_seconds if min_gap_seconds is not None else defaults.min_gap_seconds
            ),
            gap_warn_minutes=(
                gap_warn_minutes if gap_warn_minutes is not None else defaults.gap_warn_minutes
            ),
            mode_b=mode_b if mode_b is not None else defaults.mode_b,
            deduplicate=deduplicate if deduplicate is not None else defaults.deduplicate,
            status_mode=status_mode if status_mode is not None else defaults.status_mode,
        )


def load_settings_file(path: Optional[Path] = None) -> SettingsFile:
    """Read the settings file; a missing file means defaults."""
    resolved = Path(path) if path is not None else get_config_path()
    if not resolved.exists():
        logger.debug("No settings file at %s; using defaults.", resolved)
        return SettingsFile()
    try:
        data = tomllib.loads(resolved.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise SettingsFileError(f"Cannot read settings file {resolved}: {exc}") from exc
    try:
        settings = SettingsFile.model_validate(data)
    except ValidationError as exc:
        raise SettingsFileError(f"Invalid settings file {resolved}: {exc}") from exc
    logger.debug("Loaded settings from %s", resolved)
    return settings
