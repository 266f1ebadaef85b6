"""
Error taxonomy shared by services and routes.

Services raise these; the handler registered in main.py renders them as
``{"success": false, "error": <title>, "detail": <message>}``.
"""
from typing import Optional


class GatewayError(Exception):
    status_code = 500
    title = "Internal server error"

    def __init__(self, detail: str, status_code: Optional[int] = None):
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code

    def __str__(self):
        return str(self.detail)


class InvalidFormat(GatewayError):
    status_code = 400
    title = "Bad Request"


class Unauthenticated(GatewayError):
    status_code = 401
    title = "Unauthorized"


class Forbidden(GatewayError):
    status_code = 403
    title = "Forbidden"


class NotFound(GatewayError):
    status_code = 404
    title = "Not Found"


class Conflict(GatewayError):
    status_code = 409
    title = "Conflict"


class Upstream(GatewayError):
    status_code = 500
    title = "Email send failed"


class Internal(GatewayError):
    status_code = 500
    title = "Internal server error"
