"""Error taxonomy for the exam engine."""


class ExamError(Exception):
    """Base class for every error raised by the exam engine."""


class InvalidOperation(ExamError):
    """Misuse of an attempt: bad pointer, bad option index or wrong state."""


class ProviderUnavailable(ExamError):
    """The question source failed or returned too few questions."""


class PersistenceFailure(ExamError):
    """A snapshot or report could not be written or read."""


class Expired(ExamError):
    """The exam deadline has passed; the attempt is already finished."""
