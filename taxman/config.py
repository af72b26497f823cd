"""Application configuration utilities for the taxman backend.

Environment variables are read in one place so the rest of the code base can
receive a fully-resolved :class:`AppConfig` instead of consulting
``os.environ`` directly.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

GST_BASES = ("cash", "accrual")
BAS_FREQUENCIES = ("monthly", "quarterly", "annual")


@dataclass(frozen=True)
class AppConfig:
    """Strongly-typed container for runtime configuration.

    Attributes:
        project_root: Root directory of the project. Used to derive default
            paths so the app works out of the box after cloning the repo.
        database_file: Absolute path to the SQLite database file owned by the
            current process.
        default_gst_basis: Recognition basis used for BAS reports when neither
            the request nor the stored company settings name one.
        default_bas_frequency: Reporting frequency fallback, same precedence.
        default_fy_start_month: First month (1-12) of the fiscal year fallback.
        log_level: Name of the root logging level.
    """

    project_root: Path
    database_file: Path
    default_gst_basis: str
    default_bas_frequency: str
    default_fy_start_month: int
    log_level: str


def load_config() -> AppConfig:
    """Create a new :class:`AppConfig` instance based on environment settings.

    Invalid basis, frequency or month values raise :class:`ValueError` at
    start-up rather than surfacing later inside a report request.
    """

    project_root = Path(__file__).resolve().parent.parent
    database_file = Path(
        getenv_with_default(
            "TAXMAN_DB_FILE",
            project_root / "taxman.db",
        )
    )

    default_gst_basis = getenv_with_default("TAXMAN_DEFAULT_GST_BASIS", "cash").lower()
    if default_gst_basis not in GST_BASES:
        raise ValueError(f"TAXMAN_DEFAULT_GST_BASIS must be one of {GST_BASES}, got {default_gst_basis!r}")

    default_bas_frequency = getenv_with_default("TAXMAN_DEFAULT_BAS_FREQUENCY", "quarterly").lower()
    if default_bas_frequency not in BAS_FREQUENCIES:
        raise ValueError(
            f"TAXMAN_DEFAULT_BAS_FREQUENCY must be one of {BAS_FREQUENCIES}, got {default_bas_frequency!r}"
        )

    default_fy_start_month = int(getenv_with_default("TAXMAN_DEFAULT_FY_START_MONTH", "7"))
    if not 1 <= default_fy_start_month <= 12:
        raise ValueError("TAXMAN_DEFAULT_FY_START_MONTH must be between 1 and 12")

    log_level = getenv_with_default("TAXMAN_LOG_LEVEL", "INFO").upper()

    # Ensure the directories exist so later code can safely create files.
    database_file.parent.mkdir(parents=True, exist_ok=True)

    return AppConfig(
        project_root=project_root,
        database_file=database_file,
        default_gst_basis=default_gst_basis,
        default_bas_frequency=default_bas_frequency,
        default_fy_start_month=default_fy_start_month,
        log_level=log_level,
    )


def getenv_with_default(name: str, default: Optional[Path | str] = None) -> Optional[str]:
    """Return the value of an environment variable or a sensible default.

    ``None`` values are propagated so callers can make explicit decisions about
    optional configuration values. Paths are converted to strings, keeping the
    return type uniform and easy to serialise.
    """

    from os import getenv

    value = getenv(name)
    if value is not None:
        return value
    if default is None:
        return None
    return str(default)
