"""
Invocation record store.

Token to invocation record table private to one engine instance. Records
are created by the wrapping engine and settled by the resolution engine;
nothing else mutates them.
"""

from typing import Any, Iterator, Optional, Self
from asynchelpers.models.dataModel import HelperDescriptor, InvocationRecord


class InvocationStore:
    def __init__(self: Self) -> None:
        self._records: dict[str, InvocationRecord] = {}

    def create(
        self: Self,
        token: str,
        helper: HelperDescriptor,
        args: tuple[Any, ...],
        kwargs: Optional[dict[str, Any]] = None,
    ) -> InvocationRecord:
        """Add an unresolved record for a freshly issued token.

        Raises:
            ValueError: If the token was already issued
        """
        if token in self._records:
            raise ValueError(f"Token already issued: {token}")
        record = InvocationRecord(
            token=token, helper=helper, args=args, kwargs=kwargs or {}
        )
        self._records[token] = record
        return record

    def get(self: Self, token: str) -> Optional[InvocationRecord]:
        return self._records.get(token)

    def clear(self: Self) -> None:
        self._records.clear()

    def __contains__(self: Self, token: object) -> bool:
        return token in self._records

    def __iter__(self: Self) -> Iterator[InvocationRecord]:
        return iter(list(self._records.values()))

    def __len__(self: Self) -> int:
        return len(self._records)
