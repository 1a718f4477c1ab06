from typing import Optional


class FormSelectError(Exception):
    """Base class for errors raised by the forms store and client."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FormConflictError(FormSelectError):
    pass


class FormNotFoundError(FormSelectError):
    def __init__(self, form_id: str):
        super().__init__("Form not found")
        self.form_id = form_id


class FormStoreError(FormSelectError):
    """Unexpected persistence failure; keeps the driver error as the cause."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class FormsClientError(FormSelectError):
    """Raised by FormsClient on transport failures and non-2xx responses."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
