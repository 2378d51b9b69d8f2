# -*- coding: utf-8 -*-
"""
Document store

Hierarchical documents with atomic read-modify-write transactions.
"""

from .base import SERVER_TIMESTAMP, DocumentStore, Transaction
from .errors import (
    DocumentNotFound,
    StoreError,
    StorePermissionError,
    TransactionConflict,
    TransactionFailure,
)
from .memory import MemoryDocumentStore
from .sqlite import SqliteDocumentStore

__all__ = [
    'SERVER_TIMESTAMP',
    'DocumentStore',
    'Transaction',
    'DocumentNotFound',
    'StoreError',
    'StorePermissionError',
    'TransactionConflict',
    'TransactionFailure',
    'MemoryDocumentStore',
    'SqliteDocumentStore',
]
