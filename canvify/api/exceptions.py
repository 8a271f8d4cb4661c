from __future__ import annotations

from ..utils import CanvifyException


class CanvifyApiException(CanvifyException):
    pass


class CanvifyRequestException(CanvifyApiException):
    def __init__(
        self,
        name: str,
        response_status_code: int | None,
        response_text: str,
    ):
        if response_status_code is None:
            message = f"{name} request failed: {response_text}"
        else:
            message = (
                f"{name} request failed with status code "
                f"{response_status_code}: {response_text}"
            )
        super().__init__(message)
        self.response_status_code = response_status_code
        self.response_text = response_text


class CanvifyDecodeException(CanvifyApiException):
    pass


class CanvifyConfigException(CanvifyApiException):
    pass


class CanvifyNotReadyException(CanvifyApiException):
    def __init__(self, message: str = "Access token not ready"):
        super().__init__(message)
