"""
Error taxonomy for the trim pipeline.

Every failure raised by the service layer derives from TrimcastError so the
HTTP shell and the CLI can map them in one place.
"""


class TrimcastError(Exception):
    """Base class for all trim pipeline failures"""

    pass


class ValidationError(TrimcastError):
    """Raised when the request body is malformed or missing fields"""

    pass


class UnauthorizedError(TrimcastError):
    """Raised when the shared-secret header is missing or wrong"""

    pass


class InvalidSourceURLError(TrimcastError):
    """Raised when the URL does not point at a supported video"""

    pass


class UpstreamFetchError(TrimcastError):
    """Raised when source metadata or source bytes cannot be fetched"""

    pass


class NoSuitableFormatError(TrimcastError):
    """Raised when no rendition carries both audio and video in an accepted quality"""

    pass


class DurationLimitExceeded(TrimcastError):
    """
    Raised when the clamped clip is longer than the configured cap.

    Includes the requested length and the limit for display to users.
    """

    def __init__(self, message: str, duration: int, limit: int):
        super().__init__(message)
        self.duration = duration
        self.limit = limit


class TranscodeError(TrimcastError):
    """
    Raised when ffmpeg fails or produces no output.

    The stderr attribute holds ffmpeg's diagnostic output, if any.
    """

    def __init__(self, message: str, stderr: str = ''):
        super().__init__(message)
        self.stderr = stderr


class UploadError(TrimcastError):
    """
    Raised when the object store refuses the upload.

    status_code is None when the request never got a response.
    """

    def __init__(self, message: str, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class SigningError(TrimcastError):
    """Raised when signing is configured but the URL could not be signed"""

    pass


class UnexpectedError(TrimcastError):
    """Catch-all for failures outside the taxonomy"""

    pass
