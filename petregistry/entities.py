from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

PET_NAME_MAX = 50
PET_SPECIES_MAX = 50
PET_TAG_MAX = 20
CHIP_CODE_MAX = 100
CHIP_BRAND_MAX = 50


@dataclass
class RecordState:
    """Storage identity plus soft-delete flag, embedded in every entity.

    ``id`` stays 0 until the store assigns one on insert.
    """

    id: int = 0
    deleted: bool = False

    @property
    def is_new(self) -> bool:
        return self.id == 0


@dataclass(eq=False)
class Microchip:
    code: str = ""
    brand: str = ""
    state: RecordState = field(default_factory=RecordState)

    @property
    def id(self) -> int:
        return self.state.id

    def same_code(self, other: Optional[Microchip]) -> bool:
        """Business-key match: two rows carrying the same chip code."""
        return other is not None and self.code == other.code

    def same_record(self, other: Optional[Microchip]) -> bool:
        return other is not None and not self.state.is_new and self.id == other.id


@dataclass(eq=False)
class Pet:
    name: str = ""
    species: str = ""
    tag_code: str = ""
    microchip: Optional[Microchip] = None
    state: RecordState = field(default_factory=RecordState)

    @property
    def id(self) -> int:
        return self.state.id

    @property
    def microchip_id(self) -> Optional[int]:
        if self.microchip is None:
            return None
        return self.microchip.id

    def same_tag(self, other: Optional[Pet]) -> bool:
        """Business-key match: tag codes act like a licence number."""
        return other is not None and self.tag_code == other.tag_code

    def same_record(self, other: Optional[Pet]) -> bool:
        return other is not None and not self.state.is_new and self.id == other.id
