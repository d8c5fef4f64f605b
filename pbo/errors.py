class PboError(Exception):
    """Base class for PBO-specific errors."""


class EntryNotFoundError(PboError):
    pass


class MalformedArchiveError(PboError):
    pass


class ResourceExhaustedError(PboError):
    pass


class ArchiveIOError(PboError, OSError):
    pass


class InvalidStateError(PboError):
    pass
