from __future__ import annotations


class AppError(Exception):
    """
    Base for errors that map onto an HTTP status and a rendered error fragment.
    """

    status_code = 500
    title = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.title)
        self.message = message or self.title


class ValidationError(AppError):
    status_code = 400
    title = "Invalid input"


class NotFound(AppError):
    status_code = 404
    title = "Not found"

    @classmethod
    def for_entity(cls, entity: str, entity_id: int) -> "NotFound":
        return cls(f"{entity} {entity_id} does not exist.")


class StoreError(RuntimeError):
    """Store could not be opened or migrated at start-up."""
