"""Domain exceptions raised by the section aggregate and services."""

from fastapi import status


class SubwayError(Exception):
    """Base class for domain errors that surface as HTTP client errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidRequestError(SubwayError):
    """A request violates a precondition (path topology, distance, in-use station)."""

    status_code = status.HTTP_400_BAD_REQUEST


class EntityNotFoundError(SubwayError):
    """A referenced line, station or section does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class DuplicateNameError(SubwayError):
    """A station or line name is already taken."""

    status_code = status.HTTP_409_CONFLICT
