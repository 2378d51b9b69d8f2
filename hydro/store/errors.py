# -*- coding: utf-8 -*-
"""Document store — typed errors."""

from __future__ import annotations

from typing import Optional


class StoreError(Exception):
    """Base class for document store failures."""


class StorePermissionError(StoreError):
    """The store rejected a read or write on ``path``."""

    def __init__(self, path: str, operation: str, detail: Optional[str] = None) -> None:
        self.path = path
        self.operation = operation
        self.detail = detail
        message = f"Missing or insufficient permissions: {operation} {path}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"path": self.path, "operation": self.operation}


class DocumentNotFound(StoreError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"No document to update: {path}")


class TransactionConflict(StoreError):
    """A concurrent writer got there first; the transaction should be re-run."""


class TransactionFailure(StoreError):
    """The read-modify-write did not commit within the retry budget."""

    def __init__(self, path: Optional[str], attempts: int, cause: Optional[BaseException] = None) -> None:
        self.path = path
        self.attempts = attempts
        self.cause = cause
        super().__init__(f"Transaction on {path or '<unknown>'} failed after {attempts} attempt(s)")
