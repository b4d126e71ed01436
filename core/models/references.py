# =============================================================================
# core/models/references.py - Asset Reference Types
# =============================================================================
# Value types produced by the reference scanner:
# - ReferenceKind: inline / legacy / canonical
# - ScanHit: a located reference with full provenance
# - DataUri: decoded inline payload
# =============================================================================

from dataclasses import dataclass
from enum import Enum


class ReferenceKind(str, Enum):
    """
    Shapes of string values that denote binary content.

    - inline: data:<mime>;base64,<payload>
    - legacy: URL on a previous storage provider
    - canonical: URL under the current object storage public base
    """
    INLINE = "inline"
    LEGACY = "legacy"
    CANONICAL = "canonical"


@dataclass(frozen=True)
class ScanHit:
    """
    One asset reference found in a document.

    field_path uses dotted keys and bracketed indices, e.g. "images[2].url".
    """
    collection: str
    document_id: str
    field_path: str
    reference: str
    kind: ReferenceKind

    @property
    def top_field(self) -> str:
        """First key of the path ("images" for "images[2].url")."""
        return self.field_path.split(".", 1)[0].split("[", 1)[0]


@dataclass(frozen=True)
class DataUri:
    mime: str
    data: bytes
