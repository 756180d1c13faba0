from fastapi import status


class HelpdeskError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    headers = None

    def __init__(self, detail: str = "Request failed"):
        super().__init__(detail)
        self.detail = detail


class AuthenticationError(HelpdeskError):
    status_code = status.HTTP_401_UNAUTHORIZED
    headers = {"WWW-Authenticate": "Bearer"}

    def __init__(self, detail: str = "Missing token or SSO header"):
        super().__init__(detail)


class ValidationError(HelpdeskError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(HelpdeskError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, detail: str = "Not found"):
        super().__init__(detail)


class ConflictError(HelpdeskError):
    status_code = status.HTTP_409_CONFLICT
