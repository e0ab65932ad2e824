from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    MISSING_PARAMETER = "MissingParameter"
    INVALID_PARAMETER = "InvalidParameter"
    NOT_FOUND = "NotFound"
    UPSTREAM_ERROR = "UpstreamError"
    VALIDATION_ERROR = "ValidationError"
    STORE_ERROR = "StoreError"


# HTTP status each error kind is surfaced as
STATUS_CODES = {
    ErrorKind.MISSING_PARAMETER: 400,
    ErrorKind.INVALID_PARAMETER: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UPSTREAM_ERROR: 502,
    ErrorKind.VALIDATION_ERROR: 400,
    ErrorKind.STORE_ERROR: 500,
}


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str

    @property
    def ok(self) -> bool:
        return False

    @property
    def status_code(self) -> int:
        return STATUS_CODES.get(self.kind, 500)
