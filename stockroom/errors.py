# stockroom/errors.py
"""
Error taxonomy shared by the list screens.

- LoadError:            fetching a snapshot failed; the last good snapshot stays.
- MutationError:        create/update/delete failed; the snapshot is not patched.
- ValidationError:      form input broke a domain rule; nothing was submitted.
- StaleResultDiscarded: an evaluation was superseded; logged, never shown.
- DomainError:          a repository refused a write (overpayment, negative stock...).
"""

from __future__ import annotations


class StockroomError(Exception):
    """Base class for errors the UI knows how to surface."""


class LoadError(StockroomError):
    pass


class MutationError(StockroomError):
    def __init__(self, action: str, message: str):
        super().__init__(f"Failed to {action}: {message}")
        self.action = action
        self.message = message


class ValidationError(StockroomError):
    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(self.errors.values()) or "Invalid input")

    def first(self) -> tuple[str, str] | None:
        for field, msg in self.errors.items():
            return field, msg
        return None


class StaleResultDiscarded(StockroomError):
    def __init__(self, ticket: int, latest: int):
        super().__init__(f"result #{ticket} superseded by #{latest}")
        self.ticket = ticket
        self.latest = latest


class DomainError(StockroomError):
    """A repository refused a write because it breaks a business rule."""
