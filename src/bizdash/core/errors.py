"""Error taxonomy for the dashboard reports.

Services raise these instead of ``HTTPException`` so the same pipeline can
be driven from the API and from the CLI. ``bizdash.main`` maps them onto
HTTP responses."""
from fastapi import status


class DashboardError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(DashboardError):
    """Bad date text, filter type or month."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(DashboardError):
    status_code = status.HTTP_404_NOT_FOUND


class UnexpectedError(DashboardError):
    """Repository or aggregation failure. The message is always generic."""

    def __init__(self, message: str = "Internal server error."):
        super().__init__(message)
