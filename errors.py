"""Errors raised by the enrollment/recognition pipeline.

Each error carries the plain-text message and HTTP status the API
answers with.
"""


class FacialRecognitionError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadInputError(FacialRecognitionError):
    """An image file or username is missing or blank."""

    status_code = 400


class NoFaceDetectedError(FacialRecognitionError):
    """The strategy could not extract an embedding from the image."""

    status_code = 400

    def __init__(self):
        super().__init__(
            "No face detected or failed to extract embedding from the image."
        )


class UserNotFoundError(FacialRecognitionError):
    status_code = 404

    def __init__(self, username: str):
        super().__init__(f"User not found: {username}")
        self.username = username


class TemplateNotFoundError(FacialRecognitionError):
    status_code = 404

    def __init__(self, username: str):
        super().__init__(f"No facial template found for user: {username}")
        self.username = username


class ImageReadError(FacialRecognitionError):
    """The uploaded file could not be read."""

    status_code = 500

    def __init__(self):
        super().__init__("Failed to read image file.")


class InternalError(FacialRecognitionError):
    """Any unexpected failure, answered with a generic message."""

    status_code = 500

    def __init__(self, operation: str):
        super().__init__(f"An error occurred during facial {operation}.")
        self.operation = operation


class StorageUnavailableError(Exception):
    """
    The template store failed.

    Not a FacialRecognitionError: it reaches the client as an
    InternalError and its details are only logged.
    """
