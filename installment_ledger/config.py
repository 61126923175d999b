"""Configuration management for installment-ledger."""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from installment_ledger.exceptions import ConfigurationError

ROUNDING_MODES = ("NONE", "DOWN", "UP")


@dataclass
class ScheduleConfig:
    """Pricing and schedule generation settings."""

    default_markup_rate: Decimal = Decimal("30")
    term_rates: dict[int, Decimal] = field(default_factory=dict)
    rounding_mode: str = "NONE"
    rounding_step: int = 100

    def __post_init__(self) -> None:
        if self.rounding_mode not in ROUNDING_MODES:
            raise ConfigurationError(
                f"Unknown rounding mode {self.rounding_mode!r}, expected one of {ROUNDING_MODES}"
            )
        if self.rounding_step <= 0:
            raise ConfigurationError("rounding_step must be positive")


@dataclass
class AllocationConfig:
    """Payment allocation settings."""

    coverage_tolerance: Decimal = Decimal("0.01")


@dataclass
class ReminderConfig:
    """Reminder scheduling settings.

    ``reminder_days`` are day offsets relative to the due date:
    ``0`` is the due date, ``-1`` the day before, ``1`` any day after it.
    """

    reminder_days: list[int] = field(default_factory=lambda: [-1, 0, 1])
    reminder_time: str = "09:00"


@dataclass
class StorageConfig:
    """Local JSON storage configuration."""

    data_dir: Path = field(default_factory=lambda: Path("data"))
    pretty_json: bool = False


@dataclass
class LedgerConfig:
    """Main configuration for installment-ledger."""

    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    allocation: AllocationConfig = field(default_factory=AllocationConfig)
    reminders: ReminderConfig = field(default_factory=ReminderConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    currency: str = "RUB"
    seed: int | None = None
    log_level: str = "INFO"
    log_format: str = "standard"
    log_file: Path | None = None

    @classmethod
    def from_env(cls) -> "LedgerConfig":
        """Create config from environment variables."""
        import json
        import os

        try:
            term_rates_str = os.getenv("LEDGER_TERM_RATES")
            term_rates = (
                {int(k): Decimal(str(v)) for k, v in json.loads(term_rates_str).items()}
                if term_rates_str
                else {}
            )
            schedule = ScheduleConfig(
                default_markup_rate=Decimal(os.getenv("LEDGER_DEFAULT_RATE", "30")),
                term_rates=term_rates,
                rounding_mode=os.getenv("LEDGER_ROUNDING_MODE", "NONE").upper(),
                rounding_step=int(os.getenv("LEDGER_ROUNDING_STEP", "100")),
            )

            allocation = AllocationConfig(
                coverage_tolerance=Decimal(os.getenv("LEDGER_COVERAGE_TOLERANCE", "0.01")),
            )

            reminder_days_str = os.getenv("LEDGER_REMINDER_DAYS")
            reminders = ReminderConfig(
                reminder_days=[int(d) for d in json.loads(reminder_days_str)]
                if reminder_days_str
                else [-1, 0, 1],
                reminder_time=os.getenv("LEDGER_REMINDER_TIME", "09:00"),
            )

            storage = StorageConfig(
                data_dir=Path(os.getenv("LEDGER_DATA_DIR", "data")),
                pretty_json=os.getenv("LEDGER_PRETTY_JSON", "false").lower() == "true",
            )

            return cls(
                schedule=schedule,
                allocation=allocation,
                reminders=reminders,
                storage=storage,
                currency=os.getenv("LEDGER_CURRENCY", "RUB"),
                seed=int(os.getenv("SEED")) if os.getenv("SEED") else None,
                log_level=os.getenv("LOG_LEVEL", "INFO"),
                log_format=os.getenv("LOG_FORMAT", "standard"),
                log_file=Path(os.getenv("LOG_FILE")) if os.getenv("LOG_FILE") else None,
            )
        except (ValueError, TypeError, AttributeError, InvalidOperation) as exc:
            raise ConfigurationError(f"Invalid ledger configuration: {exc}") from exc
