class OCRError(Exception):
    """Base class for every failure raised by the OCR layer"""


class InvalidImageFormatError(OCRError, ValueError):
    """Image is not a "data:<media type>;base64,<payload>" string"""

    def __init__(self, message: str = "Invalid image format"):
        super().__init__(message)


class CredentialNotConfiguredError(OCRError):
    """A provider was requested but its API key is not set"""

    def __init__(self, credential: str):
        self.credential = credential
        super().__init__(f"{credential} is not configured")


class EmptyResponseError(OCRError):
    """The backend answered without any text"""


class JSONNotFoundError(OCRError):
    """No {...} object could be located in the backend's answer"""

    def __init__(self, message: str = "Could not parse JSON from response"):
        super().__init__(message)


class InvalidJSONError(OCRError):
    """The located object is not valid JSON or does not fit ExtractedFields"""


class ProviderTimeoutError(OCRError):
    """The backend did not answer within the configured timeout"""
