"""
Service errors

Raised by the services and the document store. main.py converts them into
JSON responses with the status code carried on each class.
"""


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class Unauthenticated(ServiceError):
    status_code = 401


class InvalidArgument(ServiceError):
    status_code = 400


class PermissionDenied(ServiceError):
    status_code = 403


class NotFound(ServiceError):
    status_code = 404


class Unavailable(ServiceError):
    status_code = 503
