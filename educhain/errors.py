"""Domain errors raised by the service layer.

Each error carries the HTTP status and the user-facing message the API
returns for it, so routes never have to translate them one by one.
"""


class EduChainError(Exception):
    status_code = 500
    message = 'Something went wrong. Please try again.'

    def __init__(self, message=None):
        self.message = message or self.message
        super().__init__(self.message)


class ValidationError(EduChainError):
    status_code = 400
    message = 'Invalid request'


class SelfVoteError(ValidationError):
    message = 'You cannot vote for yourself'


class DuplicateError(EduChainError):
    status_code = 409
    message = 'Record already exists'


class DuplicateReviewError(DuplicateError):
    message = 'You have already reviewed this student for this homework'


class NotEligibleError(EduChainError):
    status_code = 403
    message = 'Not eligible to become a mentor'


class AlreadyMentorError(NotEligibleError):
    message = 'You are already a mentor'


class InsufficientTokensError(EduChainError):
    status_code = 402
    message = 'Insufficient tokens'


class NotFoundError(EduChainError):
    status_code = 404
    message = 'Not found'


class AuthorizationError(EduChainError):
    status_code = 403
    message = 'You are not allowed to do this'
