"""
Exception hierarchy for the API.

Every error carries the HTTP status it maps to; the app registers a single
handler that renders ``{"detail": message}``.
"""


class InterviewPilotError(Exception):
    status_code = 500

    def __init__(self, message: str = "Server error"):
        super().__init__(message)
        self.message = message


class ValidationFailed(InterviewPilotError):
    status_code = 400


class StateConflict(InterviewPilotError):
    status_code = 400


class AuthenticationFailed(InterviewPilotError):
    status_code = 401


class NotAuthorized(InterviewPilotError):
    status_code = 401


class NotFound(InterviewPilotError):
    status_code = 404


class ConfigurationError(InterviewPilotError):
    status_code = 500


class UpstreamError(InterviewPilotError):
    status_code = 500


class QuestionGenerationError(UpstreamError):
    pass


class EvaluationError(UpstreamError):
    pass


class TranscriptionError(UpstreamError):
    pass


class EmailDeliveryError(UpstreamError):
    pass
