from fastapi import Request
from fastapi.responses import JSONResponse
from livekit.api.twirp_client import TwirpError, TwirpErrorCode
from loguru import logger

from app.shared.api.utils import ApiFailure, make_response
from app.utils.app_errors import AppError, AppErrorCode


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """
    Custom exception handler for AppError.
    Converts AppError to ApiFailure and returns via make_response.
    """
    # Log with the caller info captured when AppError was raised
    log_msg = f"{exc.errcode} {exc.erresid} msg={exc.errmesg} caller={exc.caller_info}"
    if exc.errcode == AppErrorCode.E_INTERNAL_ERROR.value:
        logger.error(log_msg)
    else:
        logger.warning(log_msg)

    failure = ApiFailure(
        errcode=exc.errcode,
        errmesg=exc.errmesg,
        erresid=exc.erresid,
        errtype=exc.errtype,
    )
    return make_response(failure, status_code=exc.status_code)


# Mapping from Twirp error codes to AppErrorCode
_TWIRP_TO_APP_ERROR_MAP = {
    TwirpErrorCode.CANCELED: AppErrorCode.E_RTC_CANCELED,
    TwirpErrorCode.UNKNOWN: AppErrorCode.E_RTC_UNKNOWN,
    TwirpErrorCode.INVALID_ARGUMENT: AppErrorCode.E_RTC_INVALID_ARGUMENT,
    TwirpErrorCode.MALFORMED: AppErrorCode.E_RTC_MALFORMED,
    TwirpErrorCode.DEADLINE_EXCEEDED: AppErrorCode.E_RTC_DEADLINE_EXCEEDED,
    TwirpErrorCode.NOT_FOUND: AppErrorCode.E_RTC_NOT_FOUND,
    TwirpErrorCode.BAD_ROUTE: AppErrorCode.E_RTC_BAD_ROUTE,
    TwirpErrorCode.ALREADY_EXISTS: AppErrorCode.E_RTC_ALREADY_EXISTS,
    TwirpErrorCode.PERMISSION_DENIED: AppErrorCode.E_RTC_PERMISSION_DENIED,
    TwirpErrorCode.UNAUTHENTICATED: AppErrorCode.E_RTC_UNAUTHENTICATED,
    TwirpErrorCode.RESOURCE_EXHAUSTED: AppErrorCode.E_RTC_RESOURCE_EXHAUSTED,
    TwirpErrorCode.FAILED_PRECONDITION: AppErrorCode.E_RTC_FAILED_PRECONDITION,
    TwirpErrorCode.ABORTED: AppErrorCode.E_RTC_ABORTED,
    TwirpErrorCode.OUT_OF_RANGE: AppErrorCode.E_RTC_OUT_OF_RANGE,
    TwirpErrorCode.UNIMPLEMENTED: AppErrorCode.E_RTC_UNIMPLEMENTED,
    TwirpErrorCode.INTERNAL: AppErrorCode.E_RTC_INTERNAL,
    TwirpErrorCode.UNAVAILABLE: AppErrorCode.E_RTC_UNAVAILABLE,
    TwirpErrorCode.DATA_LOSS: AppErrorCode.E_RTC_DATA_LOSS,
}


async def twirp_error_handler(request: Request, exc: TwirpError) -> JSONResponse:
    """
    Exception handler for TwirpError raised by the RTC provider client.
    Upstream failures keep the provider's HTTP status (5xx for server-side errors).
    """
    errcode = _TWIRP_TO_APP_ERROR_MAP.get(exc.code, AppErrorCode.E_INTERNAL_ERROR)

    log_msg = f"TwirpError: path={request.url.path} code={exc.code} status={exc.status} msg={exc.message}"
    if exc.metadata:
        log_msg += f" metadata={exc.metadata}"

    if exc.status >= 500:
        logger.error(log_msg)
    else:
        logger.warning(log_msg)

    failure = ApiFailure(errcode=errcode.value, errmesg=exc.message)
    return make_response(failure, status_code=exc.status)
