"""Failure conditions raised by the directory search engine."""


class DirectoryError(Exception):
    pass


class BackendUnavailable(DirectoryError):
    """The storage collaborator could not return business records."""


class LocationUnavailable(DirectoryError):
    """The caller's coordinates could not be obtained (denied, timed out or unsupported)."""


class BusinessNotFound(DirectoryError):
    def __init__(self, business_id: str) -> None:
        super().__init__(f"Business {business_id!r} not found")
        self.business_id = business_id
