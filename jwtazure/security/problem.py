"""Turn an error and a status code into an RFC 7807 problem response."""

from __future__ import annotations

from http import HTTPStatus

from starlette.requests import Request
from starlette.responses import JSONResponse

PROBLEM_MEDIA_TYPE = "application/problem+json"


class ProblemResponse(JSONResponse):
    media_type = PROBLEM_MEDIA_TYPE


def problem_from_error(error: Exception, status_code: int, request: Request) -> ProblemResponse:
    """
    ``detail`` carries ``str(error)``; ``instance`` is the failing request path.

    Only the content type and length headers are set.
    """
    return ProblemResponse(
        status_code=status_code,
        content={
            "type": "about:blank",
            "title": HTTPStatus(status_code).phrase,
            "status": status_code,
            "detail": str(error),
            "instance": request.url.path,
        },
    )
