"""Configuration management for nasiya."""

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

from nasiya.exceptions import ConfigurationError


@dataclass
class LedgerConfig:
    """Reconciliation rules."""

    epsilon: Decimal = Decimal("0.01")
    max_monthly_change_percent: Decimal = Decimal("50")
    # Advance the due date when a bot payment is received instead of on confirmation
    optimistic_due_date: bool = False
    base_currency: str = "USD"


@dataclass
class RateLimitConfig:
    """Per-actor throttle for contract edits."""

    max_edits: int = 10
    window_seconds: float = 60.0


@dataclass
class SweepConfig:
    """Overdue sweep schedule."""

    interval_seconds: float = 24 * 60 * 60
    initial_delay_seconds: float = 5.0


@dataclass
class ApiConfig:
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 3000
    allowed_origins: list[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )


@dataclass
class OutputConfig:
    """Export configuration."""

    json_output_dir: Path = field(default_factory=lambda: Path("output"))
    pretty_json: bool = False


@dataclass
class NasiyaConfig:
    """Main configuration for nasiya."""

    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    sweep: SweepConfig = field(default_factory=SweepConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    seed: int | None = None
    log_level: str = "INFO"
    # Local currency units per base currency unit
    exchange_rate: Decimal = Decimal("12500")

    def __post_init__(self) -> None:
        if self.ledger.epsilon <= 0:
            raise ConfigurationError("Ledger epsilon must be positive")
        if self.ledger.max_monthly_change_percent <= 0:
            raise ConfigurationError("Monthly change limit must be positive")
        if self.exchange_rate <= 0:
            raise ConfigurationError("Exchange rate must be positive")
        if self.rate_limit.max_edits < 1:
            raise ConfigurationError("Edit rate limit must allow at least one edit")

    @classmethod
    def from_env(cls) -> "NasiyaConfig":
        """Create config from environment variables."""
        import os
        from decimal import InvalidOperation

        try:
            ledger = LedgerConfig(
                epsilon=Decimal(os.getenv("LEDGER_EPSILON", "0.01")),
                max_monthly_change_percent=Decimal(os.getenv("MAX_MONTHLY_CHANGE_PERCENT", "50")),
                optimistic_due_date=os.getenv("OPTIMISTIC_DUE_DATE", "false").lower() == "true",
            )
            exchange_rate = Decimal(os.getenv("EXCHANGE_RATE", "12500"))
        except InvalidOperation as exc:
            raise ConfigurationError(f"Invalid decimal in environment: {exc}") from exc

        rate_limit = RateLimitConfig(
            max_edits=int(os.getenv("EDIT_RATE_LIMIT", "10")),
            window_seconds=float(os.getenv("EDIT_RATE_WINDOW", "60")),
        )

        sweep = SweepConfig(
            interval_seconds=float(os.getenv("SWEEP_INTERVAL", str(24 * 60 * 60))),
            initial_delay_seconds=float(os.getenv("SWEEP_INITIAL_DELAY", "5")),
        )

        origins_str = os.getenv("ALLOWED_ORIGINS", "")
        api = ApiConfig(
            host=os.getenv("API_HOST", "0.0.0.0"),
            port=int(os.getenv("API_PORT", "3000")),
        )
        if origins_str:
            api.allowed_origins = [o.strip() for o in origins_str.split(",") if o.strip()]

        output = OutputConfig(
            json_output_dir=Path(os.getenv("OUTPUT_DIR", "output")),
            pretty_json=os.getenv("PRETTY_JSON", "false").lower() == "true",
        )

        return cls(
            ledger=ledger,
            rate_limit=rate_limit,
            sweep=sweep,
            api=api,
            output=output,
            seed=int(os.getenv("SEED")) if os.getenv("SEED") else None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            exchange_rate=exchange_rate,
        )
