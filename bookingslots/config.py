"""
Configuration management using Pydantic models loaded from YAML.
"""

import logging
from datetime import date
from pathlib import Path
from typing import Any, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import (
    ALLOWED_INTERVALS,
    MAX_BUFFER_MINUTES,
    MAX_SERVICE_DURATION,
    MIN_SERVICE_DURATION,
    BookingInterval,
    BookingStatus,
    CompanySchedule,
    ServiceProfile,
    TimeOfDay,
    TimeRange,
    WorkingWindow,
)


def _normalize_time(value: Any) -> Any:
    """
    Accept "HH:MM" strings and YAML's sexagesimal integers.

    PyYAML loads an unquoted ``9:00`` as the integer 540, which is exactly the
    minutes since midnight.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return str(TimeOfDay(value))
    if isinstance(value, str):
        return str(TimeOfDay.parse(value))
    return value


class CompanyConfig(BaseModel):
    """Company booking settings."""
    id: str
    name: str = ""
    working_start_time: str = "08:00"
    working_end_time: str = "18:00"
    booking_interval_minutes: int = 30
    booking_advance_days: int = 30
    cancellation_hours: int = 2
    timezone: str = "America/Sao_Paulo"
    is_active: bool = True

    @field_validator("working_start_time", "working_end_time", mode="before")
    @classmethod
    def validate_time(cls, value: Any) -> Any:
        """Normalize times to HH:MM."""
        return _normalize_time(value)

    @field_validator("booking_interval_minutes")
    @classmethod
    def validate_interval(cls, value: int) -> int:
        """Ensure the interval is one of the supported grid steps."""
        if value not in ALLOWED_INTERVALS:
            raise ValueError(
                f"booking_interval_minutes must be one of {sorted(ALLOWED_INTERVALS)}, got {value}"
            )
        return value

    @field_validator("booking_advance_days")
    @classmethod
    def validate_advance_days(cls, value: int) -> int:
        if not 1 <= value <= 365:
            raise ValueError(f"booking_advance_days must be between 1 and 365, got {value}")
        return value

    @field_validator("cancellation_hours")
    @classmethod
    def validate_cancellation_hours(cls, value: int) -> int:
        if not 0 <= value <= 48:
            raise ValueError(f"cancellation_hours must be between 0 and 48, got {value}")
        return value

    @model_validator(mode="after")
    def validate_hours_order(self) -> "CompanyConfig":
        """Ensure the working window opens before it closes."""
        if TimeOfDay.parse(self.working_end_time) <= TimeOfDay.parse(self.working_start_time):
            raise ValueError("working_end_time must be later than working_start_time")
        return self

    def to_schedule(self) -> CompanySchedule:
        return CompanySchedule(
            company_id=self.id,
            name=self.name,
            working_window=WorkingWindow(
                open=TimeOfDay.parse(self.working_start_time),
                close=TimeOfDay.parse(self.working_end_time),
            ),
            interval_minutes=self.booking_interval_minutes,
            is_active=self.is_active,
            booking_advance_days=self.booking_advance_days,
            cancellation_hours=self.cancellation_hours,
            timezone=self.timezone,
        )


class ServiceConfig(BaseModel):
    """Service offered by a company."""
    id: str
    company_id: str
    name: str = ""
    duration_minutes: int
    buffer_time_minutes: int = 0
    is_active: bool = True

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure service duration is within bounds."""
        if not MIN_SERVICE_DURATION <= value <= MAX_SERVICE_DURATION:
            raise ValueError(
                f"duration_minutes must be between {MIN_SERVICE_DURATION} and "
                f"{MAX_SERVICE_DURATION}, got {value}"
            )
        return value

    @field_validator("buffer_time_minutes")
    @classmethod
    def validate_buffer(cls, value: int) -> int:
        if not 0 <= value <= MAX_BUFFER_MINUTES:
            raise ValueError(
                f"buffer_time_minutes must be between 0 and {MAX_BUFFER_MINUTES}, got {value}"
            )
        return value

    def to_profile(self) -> ServiceProfile:
        return ServiceProfile(
            service_id=self.id,
            company_id=self.company_id,
            name=self.name,
            duration_minutes=self.duration_minutes,
            buffer_minutes=self.buffer_time_minutes,
            is_active=self.is_active,
        )


class BookingSeed(BaseModel):
    """Existing booking used to seed the in-memory store."""
    id: Optional[str] = None
    professional_id: str
    booking_date: date
    start_time: str
    end_time: str
    status: BookingStatus = BookingStatus.CONFIRMED
    company_id: Optional[str] = None
    service_id: Optional[str] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_time(cls, value: Any) -> Any:
        return _normalize_time(value)

    @model_validator(mode="after")
    def validate_range(self) -> "BookingSeed":
        if TimeOfDay.parse(self.end_time) <= TimeOfDay.parse(self.start_time):
            raise ValueError("end_time must be later than start_time")
        return self

    def to_interval(self, fallback_id: str) -> BookingInterval:
        return BookingInterval(
            booking_id=self.id or fallback_id,
            professional_id=self.professional_id,
            booking_date=self.booking_date,
            time_range=TimeRange.from_strings(self.start_time, self.end_time),
            status=self.status,
            company_id=self.company_id,
            service_id=self.service_id,
        )


class AppConfig(BaseModel):
    """Application configuration."""
    log_level: str = "INFO"
    companies: List[CompanyConfig] = Field(default_factory=list)
    services: List[ServiceConfig] = Field(default_factory=list)
    bookings: List[BookingSeed] = Field(default_factory=list)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @model_validator(mode="after")
    def validate_references(self) -> "AppConfig":
        """Ensure ids are unique and services belong to configured companies."""
        company_ids = [company.id for company in self.companies]
        if len(set(company_ids)) != len(company_ids):
            raise ValueError("Duplicate company id detected")

        service_ids = [service.id for service in self.services]
        if len(set(service_ids)) != len(service_ids):
            raise ValueError("Duplicate service id detected")

        unknown = sorted({s.company_id for s in self.services} - set(company_ids))
        if unknown:
            raise ValueError(f"Services reference unknown company id(s): {', '.join(unknown)}")

        seed_ids = [seed.id for seed in self.bookings if seed.id is not None]
        if len(set(seed_ids)) != len(seed_ids):
            raise ValueError("Duplicate booking id detected")

        active = [
            seed.to_interval(fallback_id=f"seed-{index}")
            for index, seed in enumerate(self.bookings, 1)
            if seed.status.is_active
        ]
        for position, first in enumerate(active):
            for second in active[position + 1:]:
                if (
                    first.professional_id == second.professional_id
                    and first.booking_date == second.booking_date
                    and first.time_range.overlaps(second.time_range)
                ):
                    raise ValueError(
                        f"Overlapping bookings for {first.professional_id} on "
                        f"{first.booking_date}: {first.time_range} and {second.time_range}"
                    )
        return self

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level)

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def find_company(self, company_id: str) -> CompanyConfig | None:
        for company in self.companies:
            if company.id == company_id:
                return company
        return None

    def services_for(self, company_id: str) -> List[ServiceConfig]:
        return [service for service in self.services if service.company_id == company_id]


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
