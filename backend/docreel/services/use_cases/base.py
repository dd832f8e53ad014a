"""
Use cases are single operations that routes call into. They take and return
plain dataclasses and raise ``DocReelError`` subclasses; mapping those to HTTP
status codes happens in ``main.py``.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

RequestT = TypeVar("RequestT")
ResponseT = TypeVar("ResponseT")


class UseCase(ABC, Generic[RequestT, ResponseT]):
    @abstractmethod
    async def execute(self, request: RequestT) -> ResponseT:
        ...
