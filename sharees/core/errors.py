"""Error types raised by the sharee directory client and result model."""

from typing import Dict


class OcsError(Exception):
    """A failed sharee lookup, carrying the server status code."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message

    def to_dict(self) -> Dict:
        return {
            'status_code': self.status_code,
            'message': self.message
        }


class UnknownFieldError(LookupError):
    """Requested a derived result field that does not exist."""

    def __init__(self, field):
        super().__init__(f"Unknown result field: {field!r}")
        self.field = field
