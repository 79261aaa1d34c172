"""Exceptions raised by the trip planner.

Mandatory planning steps (geocoding, directions) raise these and the caller
decides how to surface them; optional steps never raise past their adapter.
"""


class TripPlannerError(Exception):
    """Base class for every error raised by this package."""


class PlanRequestError(TripPlannerError):
    """The user-supplied plan request is invalid."""


class LocationNotFoundError(TripPlannerError):
    """One or both trip endpoints could not be geocoded."""

    MESSAGES = {
        "both": "Neither start nor end location could be found. Try using city names or addresses.",
        "start": "Start location could not be found. Try a more specific location name.",
        "end": "End location could not be found. Try a more specific location name.",
    }

    def __init__(self, failed: str):
        self.failed = failed
        super().__init__(self.MESSAGES[failed])


class NoRouteFoundError(TripPlannerError):
    def __init__(self, message: str = ""):
        super().__init__(
            message
            or "No route found between these locations. Please try different locations or a different transport mode."
        )


class ProviderError(TripPlannerError):
    """A mandatory external provider could not be reached."""


class TripValidationError(TripPlannerError):
    """A trip payload failed client-side validation before being sent."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class TripStoreError(TripPlannerError):
    """The persistence API rejected a request."""

    def __init__(self, message: str, status_code: int | None = None, errors: dict | None = None):
        self.status_code = status_code
        self.errors = errors or {}
        super().__init__(message)
