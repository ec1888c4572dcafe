"""Exception hierarchy shared by the scheduler, positions service and API."""


class PlanetaryHoursError(Exception):
    """Base class for every failure raised by this package."""


class InvalidInputError(PlanetaryHoursError, ValueError):
    """Coordinates, date or time zone rejected at the query boundary."""


class EphemerisError(PlanetaryHoursError):
    """The ephemeris could not produce a requested quantity."""


class PolarDayOrNightError(EphemerisError):
    """No sunrise or sunset inside the search window (polar day or night)."""

    def __init__(self, message: str, latitude: float, longitude: float) -> None:
        super().__init__(message)
        self.latitude = latitude
        self.longitude = longitude


class ComputationInconsistencyError(PlanetaryHoursError, AssertionError):
    """An internally derived invariant does not hold. Indicates a bug."""


class DayBoundaryRecursionError(PlanetaryHoursError, RuntimeError):
    """Current-hour lookup needed more than one day of correction."""


class EphemerisRangeError(EphemerisError, InvalidInputError):
    """Requested instant lies outside the loaded ephemeris kernel."""
