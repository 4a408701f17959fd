from .common import ErrorDetail, ErrorResponse, SuccessResponse

__all__ = ["ErrorDetail", "ErrorResponse", "SuccessResponse"]
