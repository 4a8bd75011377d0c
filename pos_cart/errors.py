"""Exception types raised by the cart core."""

from __future__ import annotations

from enum import Enum


class PosCartError(Exception):
    """Base class for all pos-cart errors."""


class CatalogFormatError(PosCartError):
    """The catalog payload does not have the expected shape."""


class ApiError(PosCartError):
    """A backend request failed (network, HTTP status or body)."""

    def __init__(self, message: str, url: str = "", status: int | None = None) -> None:
        super().__init__(f"{message} ({url})" if url else message)
        self.reason = message
        self.url = url
        self.status = status


class PersistenceError(PosCartError):
    """The local SQLite store could not be read or written."""


class CartIndexError(PosCartError, IndexError):
    """A cart position outside the current line range was addressed."""

    def __init__(self, index: int, size: int) -> None:
        super().__init__(f"cart index {index} out of range for {size} line(s)")
        self.index = index
        self.size = size


class SelectionProblem(Enum):
    MISSING_VARIANT = "missing_variant"
    MISSING_FLAVOR = "missing_flavor"
    INVALID_QUANTITY = "invalid_quantity"
    UNKNOWN_EXTRA = "unknown_extra"
    UNKNOWN_SAUCE = "unknown_sauce"


SELECTION_PROBLEM_MESSAGES: dict[SelectionProblem, str] = {
    SelectionProblem.MISSING_VARIANT: "Select a size",
    SelectionProblem.MISSING_FLAVOR: "Select a flavor",
    SelectionProblem.INVALID_QUANTITY: "Quantity out of range (1 to 999, extras up to 99)",
    SelectionProblem.UNKNOWN_EXTRA: "Unknown extra in selection",
    SelectionProblem.UNKNOWN_SAUCE: "Unknown sauce in selection",
}


class InvalidSelection(PosCartError):
    """Raised by configure() with every problem found in a selection."""

    def __init__(self, problems: tuple[SelectionProblem, ...]) -> None:
        self.problems = problems
        super().__init__(", ".join(problem.value for problem in problems))

    def messages(self) -> list[str]:
        return [SELECTION_PROBLEM_MESSAGES[problem] for problem in self.problems]


class OrderSubmissionFailed(PosCartError):
    """The backend did not confirm an order."""


class PrinterError(PosCartError):
    """Kitchen ticket printing failed."""
