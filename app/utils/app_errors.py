"""Application error type raised by domain and API layers."""

import inspect
from enum import Enum, IntEnum
from uuid import uuid4


class HttpStatusCode(IntEnum):
    OK = 200
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    UNPROCESSABLE_ENTITY = 422
    INTERNAL_SERVER_ERROR = 500
    BAD_GATEWAY = 502


class AppErrorCode(str, Enum):
    # Generic
    E_INTERNAL_ERROR = "E_INTERNAL_ERROR"
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_INVALID_STATE = "E_INVALID_STATE"
    E_FORBIDDEN = "E_FORBIDDEN"

    # Authentication
    E_BAD_TOKEN = "E_BAD_TOKEN"
    E_TOKEN_EXPIRED = "E_TOKEN_EXPIRED"
    E_INVALID_CREDENTIALS = "E_INVALID_CREDENTIALS"
    E_USER_EXISTS = "E_USER_EXISTS"

    # Lookups
    E_USER_NOT_FOUND = "E_USER_NOT_FOUND"
    E_SESSION_NOT_FOUND = "E_SESSION_NOT_FOUND"
    E_PACKAGE_NOT_FOUND = "E_PACKAGE_NOT_FOUND"

    # Session
    E_SESSION_VERSION_CONFLICT = "E_SESSION_VERSION_CONFLICT"
    E_SESSION_FORBIDDEN = "E_SESSION_FORBIDDEN"
    E_SESSION_FULL = "E_SESSION_FULL"
    E_SESSION_ALREADY_BOOKED = "E_SESSION_ALREADY_BOOKED"
    E_INSUFFICIENT_TOKENS = "E_INSUFFICIENT_TOKENS"

    # RTC provider (mapped from Twirp error codes)
    E_RTC_CANCELED = "E_RTC_CANCELED"
    E_RTC_UNKNOWN = "E_RTC_UNKNOWN"
    E_RTC_INVALID_ARGUMENT = "E_RTC_INVALID_ARGUMENT"
    E_RTC_MALFORMED = "E_RTC_MALFORMED"
    E_RTC_DEADLINE_EXCEEDED = "E_RTC_DEADLINE_EXCEEDED"
    E_RTC_NOT_FOUND = "E_RTC_NOT_FOUND"
    E_RTC_BAD_ROUTE = "E_RTC_BAD_ROUTE"
    E_RTC_ALREADY_EXISTS = "E_RTC_ALREADY_EXISTS"
    E_RTC_PERMISSION_DENIED = "E_RTC_PERMISSION_DENIED"
    E_RTC_UNAUTHENTICATED = "E_RTC_UNAUTHENTICATED"
    E_RTC_RESOURCE_EXHAUSTED = "E_RTC_RESOURCE_EXHAUSTED"
    E_RTC_FAILED_PRECONDITION = "E_RTC_FAILED_PRECONDITION"
    E_RTC_ABORTED = "E_RTC_ABORTED"
    E_RTC_OUT_OF_RANGE = "E_RTC_OUT_OF_RANGE"
    E_RTC_UNIMPLEMENTED = "E_RTC_UNIMPLEMENTED"
    E_RTC_INTERNAL = "E_RTC_INTERNAL"
    E_RTC_UNAVAILABLE = "E_RTC_UNAVAILABLE"
    E_RTC_DATA_LOSS = "E_RTC_DATA_LOSS"

    def __str__(self) -> str:
        return self.value


AUTHENTICATION_ERROR = "AuthenticationError"

_AUTHENTICATION_CODES = {AppErrorCode.E_BAD_TOKEN, AppErrorCode.E_TOKEN_EXPIRED}


class AppError(Exception):
    """Error with an API error code and an HTTP status.

    The call site that raised the error is captured so the exception handler
    can log where it came from rather than where it was caught.
    """

    def __init__(
        self,
        errcode: AppErrorCode | str = AppErrorCode.E_INTERNAL_ERROR,
        errmesg: str = "We are sorry, an error occurred.",
        status_code: int = HttpStatusCode.BAD_REQUEST,
        *,
        errtype: str | None = None,
        stacklevel: int = 1,
    ):
        super().__init__(errmesg)
        self.errcode = errcode.value if isinstance(errcode, AppErrorCode) else errcode
        self.errmesg = errmesg
        self.status_code = int(status_code)
        self.erresid = uuid4().hex[:10]

        if errtype is None and errcode in _AUTHENTICATION_CODES:
            errtype = AUTHENTICATION_ERROR
        self.errtype = errtype

        caller_frame = inspect.stack()[stacklevel]
        module = inspect.getmodule(caller_frame.frame)
        module_name = (
            module.__name__ if module and getattr(module, "__name__", None) else caller_frame.filename
        )
        self.caller_info = f"{module_name}:{caller_frame.function}:{caller_frame.lineno}"

    def __repr__(self) -> str:
        return f"AppError(errcode={self.errcode!r}, status_code={self.status_code}, errmesg={self.errmesg!r})"


def not_found(errcode: AppErrorCode, what: str) -> AppError:
    return AppError(
        errcode=errcode,
        errmesg=f"{what} not found",
        status_code=HttpStatusCode.NOT_FOUND,
        stacklevel=2,
    )


def invalid_state(errmesg: str) -> AppError:
    return AppError(
        errcode=AppErrorCode.E_INVALID_STATE,
        errmesg=errmesg,
        status_code=HttpStatusCode.BAD_REQUEST,
        stacklevel=2,
    )


def bad_request(errcode: AppErrorCode, errmesg: str) -> AppError:
    return AppError(
        errcode=errcode,
        errmesg=errmesg,
        status_code=HttpStatusCode.BAD_REQUEST,
        stacklevel=2,
    )


def invalid_request(errmesg: str) -> AppError:
    return AppError(
        errcode=AppErrorCode.E_INVALID_REQUEST,
        errmesg=errmesg,
        status_code=HttpStatusCode.BAD_REQUEST,
        stacklevel=2,
    )


def forbidden(errmesg: str, errcode: AppErrorCode = AppErrorCode.E_FORBIDDEN) -> AppError:
    return AppError(
        errcode=errcode, errmesg=errmesg, status_code=HttpStatusCode.FORBIDDEN, stacklevel=2
    )
