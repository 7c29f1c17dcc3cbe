# weeclass/core/errors.py

from typing import List


class WeeClassError(Exception):
    """Base error for the intake service."""


class StoreError(WeeClassError):
    """The record store rejected or failed an operation."""


class StorePermissionError(StoreError):
    pass


class StoreQueryError(StoreError):
    """Query could not run (e.g. ordering index missing on the backend)."""


class RecordNotFound(StoreError):
    def __init__(self, collection: str, record_id: str):
        super().__init__(f"{collection}/{record_id} not found")
        self.collection = collection
        self.record_id = record_id


class FormValidationError(WeeClassError):
    def __init__(self, missing_fields: List[str]):
        super().__init__("필수 항목이 입력되지 않았습니다: " + ", ".join(missing_fields))
        self.missing_fields = missing_fields


class AuthError(WeeClassError):
    pass


class DemoModeError(WeeClassError):
    """Raised for writes attempted while persistence is disabled."""
