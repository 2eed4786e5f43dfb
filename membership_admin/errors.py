class MaintenanceError(Exception):
    """Base class for membership maintenance failures."""


class CredentialsError(MaintenanceError):
    """Credential file missing or unreadable. No network call has been made."""


class BatchAborted(MaintenanceError):
    """A fail-fast batch stopped early.

    `result` holds the counts reached before the failure; the original
    exception is chained as __cause__.
    """

    def __init__(self, message, result):
        super().__init__(message)
        self.result = result
