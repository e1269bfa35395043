# plugins/asset_registry/contracts.py

from typing import Any, Dict, Sequence

from plugins.core_world_state.contracts import LedgerError


class AlreadyExistsError(LedgerError):
    code = "already_exists"
    http_status = 409


class NotFoundError(LedgerError):
    code = "not_found"
    http_status = 404


class InvalidEnumValueError(LedgerError):
    code = "invalid_enum_value"
    http_status = 422

    def __init__(self, value: Any, allowed: Sequence[str], operation: str = "AssetType.parse"):
        super().__init__(
            f"'{value}' is not a valid asset type; expected one of {', '.join(allowed)}",
            operation=operation,
        )
        self.value = value
        self.allowed = list(allowed)

    def to_dict(self) -> Dict[str, Any]:
        return {**super().to_dict(), "value": self.value, "allowed": self.allowed}


class EncodingError(LedgerError):
    code = "encoding_error"


class DecodingError(LedgerError):
    code = "decoding_error"
