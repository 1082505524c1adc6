"""
Error taxonomy shared by the ledger, reconciliation and REST layers.

Every error carries the HTTP status the API answers with; ``main.py``
registers one handler for ``SchoolError`` that renders them all.
"""


class SchoolError(Exception):
    status_code = 500
    kind = "school_error"

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail or self.__class__.__doc__ or self.kind


class NotFound(SchoolError):
    """Referenced record does not exist"""
    status_code = 404
    kind = "not_found"


class InvalidAmount(SchoolError):
    """Payment amount must be greater than zero"""
    status_code = 400
    kind = "invalid_amount"


class DuplicatePeriod(SchoolError):
    """A payment for this period is already recorded"""
    status_code = 400
    kind = "duplicate_period"

    def __init__(self, detail: str = "", existing_id=None):
        super().__init__(detail)
        self.existing_id = existing_id


class MalformedPeriodKey(SchoolError, ValueError):
    """Period must look like "year/month" with a month between 1 and 12"""
    status_code = 400
    kind = "malformed_period"


class Forbidden(SchoolError):
    """Access denied"""
    status_code = 403
    kind = "forbidden"


class EntityInUse(SchoolError):
    """Record is still referenced and cannot be deleted"""
    status_code = 400
    kind = "entity_in_use"


class StorageFailure(SchoolError):
    """Server Error"""
    status_code = 500
    kind = "storage_failure"
