"""Runtime settings read from the environment (and an optional .env file)."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

_ROOT = Path(__file__).parent.parent.parent

_PREFIX = "PLANETARY_HOURS_"


@dataclass(frozen=True)
class Settings:
    """Process configuration. Built once by an entry point and passed down."""

    data_dir: Path = _ROOT / "resources"  # skyfield download/cache directory
    ephemeris: str = "de421.bsp"  # JPL kernel file name
    log_level: str = "INFO"
    cache_size: int = 512  # Max entries per TTL cache
    cache_ttl: float = 24 * 60 * 60  # Seconds, schedules for dates other than today
    today_ttl: float = 30.0  # Seconds, today's schedule and "now" positions
    positions_ttl: float = 7 * 24 * 60 * 60  # Seconds, positions at explicit instants
    host: str = "127.0.0.1"
    port: int = 8000


def _env(name: str, default: str) -> str:
    return os.environ.get(_PREFIX + name, default)


def load_settings(dotenv: bool = True) -> Settings:
    """Build Settings from ``PLANETARY_HOURS_*`` environment variables.

    Args:
        dotenv: Load a ``.env`` file from the working directory first.

    Returns:
        Settings with defaults for every unset variable.

    Raises:
        ValueError: If a numeric variable cannot be parsed.
    """
    if dotenv:
        load_dotenv()
    defaults = Settings()
    return Settings(
        data_dir=Path(_env("DATA_DIR", str(defaults.data_dir))),
        ephemeris=_env("EPHEMERIS", defaults.ephemeris),
        log_level=_env("LOG_LEVEL", defaults.log_level).upper(),
        cache_size=int(_env("CACHE_SIZE", str(defaults.cache_size))),
        cache_ttl=float(_env("CACHE_TTL", str(defaults.cache_ttl))),
        today_ttl=float(_env("TODAY_TTL", str(defaults.today_ttl))),
        positions_ttl=float(_env("POSITIONS_TTL", str(defaults.positions_ttl))),
        host=_env("HOST", defaults.host),
        port=int(_env("PORT", str(defaults.port))),
    )


def configure_logging(settings: Settings) -> None:
    """Install a root handler at the configured level. Entry points only."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
