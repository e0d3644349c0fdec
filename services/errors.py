# services/errors.py
"""
Ledger error taxonomy.

Every error carries the HTTP status and a stable ``code`` so the API layer can
tell "not found" from "validation failed" from "insufficient inventory".
"""


class LedgerError(Exception):
    status_code = 500
    code = "ledger_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class NotFound(LedgerError):
    status_code = 404
    code = "not_found"

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id


class ValidationFailed(LedgerError):
    status_code = 400
    code = "validation_failed"


class ComponentUnavailable(LedgerError):
    status_code = 409
    code = "component_unavailable"

    def __init__(self, role: str, required_name: str):
        super().__init__(f"Required {role} '{required_name}' not found in inventory")
        self.role = role
        self.required_name = required_name

    def to_dict(self) -> dict:
        return {**super().to_dict(), "component": self.role, "required_name": self.required_name}


class InsufficientStock(LedgerError):
    status_code = 409
    code = "insufficient_stock"

    def __init__(self, role: str, product_name: str, available: int, requested: int):
        super().__init__(
            f"Insufficient {role} '{product_name}': {available} available, {requested} requested"
        )
        self.role = role
        self.product_name = product_name
        self.available = available
        self.requested = requested

    @property
    def shortfall(self) -> int:
        return self.requested - self.available

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "component": self.role,
            "product_name": self.product_name,
            "available": self.available,
            "requested": self.requested,
            "shortfall": self.shortfall,
        }


class SerialCollision(LedgerError):
    """Allocated srNo is already taken. Retry from the current maximum."""
    status_code = 409
    code = "serial_collision"

    def __init__(self, sr_no: int):
        super().__init__(f"Serial number {sr_no} already exists. Please try again.")
        self.sr_no = sr_no


class InventorySyncError(LedgerError):
    """A later step of a multi-step operation failed after an earlier one committed."""
    status_code = 500
    code = "inventory_sync_failed"
