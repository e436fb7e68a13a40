from __future__ import annotations

from typing import Optional

from loguru import logger

from ..entities import CHIP_BRAND_MAX, CHIP_CODE_MAX, Microchip
from ..errors import ValidationError
from ..gateways.microchips import MicrochipGateway
from .validation import require_id, require_text


class MicrochipService:
    """Validates and persists microchips. Knows nothing about pets."""

    def __init__(self, gateway: MicrochipGateway):
        if gateway is None:
            raise ValueError("MicrochipService needs a gateway.")
        self.gateway = gateway

    def create(self, chip: Microchip) -> Microchip:
        self.validate(chip)
        self.gateway.insert(chip)
        logger.info("Microchip {} created (code={})", chip.id, chip.code)
        return chip

    def update(self, chip: Microchip) -> Microchip:
        self.validate(chip)
        require_id(chip.id, "microchip")
        self.gateway.update(chip)
        logger.info("Microchip {} updated", chip.id)
        return chip

    def delete(self, chip_id: int) -> None:
        """Soft-delete a microchip without looking at the pets that reference it.

        Pets pointing at this chip keep their reference. Use
        ``PetService.safely_remove_microchip`` to detach the chip first.
        """
        require_id(chip_id, "microchip")
        self.gateway.soft_delete(chip_id)
        logger.info("Microchip {} deleted", chip_id)

    def get_by_id(self, chip_id: int) -> Optional[Microchip]:
        require_id(chip_id, "microchip")
        return self.gateway.get_by_id(chip_id)

    def get_all(self) -> list[Microchip]:
        return self.gateway.get_all()

    @staticmethod
    def validate(chip: Optional[Microchip]) -> None:
        if chip is None:
            raise ValidationError("A microchip is required.")
        chip.code = require_text(chip.code, "Chip code", CHIP_CODE_MAX)
        chip.brand = require_text(chip.brand, "Brand", CHIP_BRAND_MAX)
