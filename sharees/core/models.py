"""Data models for sharee search."""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional


class ShareType(IntEnum):
    """
    Share type codes used by the sharee directory.

    Codes the directory sends that are not listed here become
    pseudo-members named UNRECOGNIZED which keep their integer value.
    """
    USER = 0
    GROUP = 1
    EMAIL = 4
    REMOTE = 6
    CIRCLE = 7
    ROOM = 10

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, int) or isinstance(value, bool):
            return None
        member = int.__new__(cls, value)
        member._name_ = "UNRECOGNIZED"
        member._value_ = value
        return member

    @property
    def is_recognized(self) -> bool:
        return self._name_ != "UNRECOGNIZED"


class ItemKind(Enum):
    """Kind of item being shared."""
    FILE = "file"
    FOLDER = "folder"


class LookupMode(Enum):
    """Whether to query only known recipients or the global directory."""
    LOCAL_SEARCH = "local"
    GLOBAL_SEARCH = "global"


@dataclass
class SearchQuery:
    """Current query state, edited by the UI and read at fetch time."""
    text: str = ""
    item_kind: ItemKind = ItemKind.FILE
    lookup_mode: LookupMode = LookupMode.LOCAL_SEARCH


@dataclass(frozen=True)
class RecipientCandidate:
    """A sharee returned by the directory."""
    share_type: ShareType
    identifier: str  # shareWith value
    display_name: str
    additional_info: Optional[str] = None

    @property
    def match_string(self) -> str:
        """String used for autocomplete matching, not for display."""
        return f"{self.display_name} ({self.identifier})"


@dataclass(frozen=True)
class AuthenticatedSession:
    """Credentials for the server hosting the sharee directory."""
    server_url: str
    user: str
    app_password: str = ""
    verify_tls: bool = True

    @property
    def is_valid(self) -> bool:
        return bool(self.server_url) and bool(self.user)
