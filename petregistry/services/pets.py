from __future__ import annotations

from typing import Optional

from loguru import logger

from ..entities import PET_NAME_MAX, PET_SPECIES_MAX, PET_TAG_MAX, Microchip, Pet
from ..errors import IntegrityError, PetRegistryError, ValidationError
from ..gateways.pets import PetGateway
from ..gateways.session import transaction
from .microchips import MicrochipService
from .validation import require_id, require_text


class PetService:
    """Business rules for pets and the microchips they hold.

    Responsibilities:
    - validate pet fields before anything is written
    - keep tag codes unique among active pets
    - create or update a pet's microchip through ``MicrochipService``
    - remove a pet's microchip without leaving the pet pointing at it
    """

    def __init__(self, gateway: PetGateway, microchips: MicrochipService):
        if gateway is None:
            raise ValueError("PetService needs a gateway.")
        if microchips is None:
            raise ValueError("PetService needs a MicrochipService.")
        self.gateway = gateway
        self.microchips = microchips

    def create(self, pet: Pet) -> Pet:
        """Insert a pet, storing its microchip first when it has one.

        A chip with id 0 is created and the pet then references the new id;
        a chip that already has an id is updated instead. Both writes share
        one transaction.
        """
        self._validate(pet)
        chip = pet.microchip
        if chip is not None:
            self.microchips.validate(chip)
        self._ensure_tag_unique(pet.tag_code)

        new_chip = chip is not None and chip.state.is_new
        try:
            with transaction(f"register pet {pet.tag_code}"):
                if chip is not None:
                    if new_chip:
                        self.microchips.create(chip)
                    else:
                        self.microchips.update(chip)
                self.gateway.insert(pet)
        except PetRegistryError:
            if new_chip:
                chip.state.id = 0
            raise
        logger.info("Pet {} created (tag={}, microchip={})", pet.id, pet.tag_code, pet.microchip_id)
        return pet

    def update(self, pet: Pet) -> Pet:
        """Save a pet together with its microchip.

        A chip with id 0 is created first; edits to an active stored chip are
        written in the same transaction. A chip already soft-deleted is only
        kept as a reference.
        """
        self._validate(pet)
        require_id(pet.id, "pet")
        chip = pet.microchip
        new_chip = chip is not None and chip.state.is_new
        stored_chip = chip is not None and not new_chip and not chip.state.deleted
        if new_chip or stored_chip:
            self.microchips.validate(chip)
        self._ensure_tag_unique(pet.tag_code, exclude_id=pet.id)

        try:
            with transaction(f"update pet {pet.id}"):
                if new_chip:
                    self.microchips.create(chip)
                self.gateway.update(pet)
                if stored_chip:
                    self.microchips.update(chip)
        except PetRegistryError:
            if new_chip:
                chip.state.id = 0
            raise
        logger.info("Pet {} updated", pet.id)
        return pet

    def delete(self, pet_id: int) -> None:
        """Soft-delete a pet. Its microchip, shared or not, is left alone."""
        require_id(pet_id, "pet")
        self.gateway.soft_delete(pet_id)
        logger.info("Pet {} deleted", pet_id)

    def get_by_id(self, pet_id: int) -> Optional[Pet]:
        require_id(pet_id, "pet")
        return self.gateway.get_by_id(pet_id)

    def get_all(self) -> list[Pet]:
        return self.gateway.get_all()

    def search_by_name_or_species(self, text: str) -> list[Pet]:
        text = require_text(text, "Search text")
        return self.gateway.search_by_name_or_species(text)

    def find_by_exact_tag(self, tag_code: str) -> Optional[Pet]:
        tag_code = require_text(tag_code, "Tag code")
        return self.gateway.find_by_exact_tag(tag_code)

    def update_microchip_of_pet(
        self, pet_id: int, code: Optional[str] = None, brand: Optional[str] = None
    ) -> Microchip:
        """Edit the microchip a pet currently holds; blank values keep the old ones."""
        pet = self._require_pet(pet_id)
        chip = pet.microchip
        if chip is None or chip.state.deleted:
            raise ValidationError(f"Pet {pet_id} has no microchip.")
        if code and code.strip():
            chip.code = code
        if brand and brand.strip():
            chip.brand = brand
        return self.microchips.update(chip)

    def safely_remove_microchip(self, pet_id: int, microchip_id: int) -> None:
        """Detach a microchip from its pet, then soft-delete the microchip.

        The pet is always updated before the chip is deleted so no active
        pet ever references a deleted chip. Both steps run in one
        transaction.
        """
        require_id(microchip_id, "microchip")
        pet = self._require_pet(pet_id)
        if pet.microchip_id != microchip_id:
            logger.warning(
                "Microchip {} is not held by pet {} (holds {})",
                microchip_id, pet_id, pet.microchip_id,
            )
            raise IntegrityError(f"Microchip {microchip_id} does not belong to pet {pet_id}.")

        already_deleted = pet.microchip.state.deleted
        with transaction(f"remove microchip {microchip_id} from pet {pet_id}"):
            pet.microchip = None
            self.gateway.update(pet)
            # a chip soft-deleted through the unsafe path only needs detaching
            if not already_deleted:
                self.microchips.delete(microchip_id)
        logger.info("Microchip {} detached from pet {} and deleted", microchip_id, pet_id)

    def _require_pet(self, pet_id: int) -> Pet:
        require_id(pet_id, "pet")
        pet = self.gateway.get_by_id(pet_id)
        if pet is None:
            logger.warning("Pet {} does not exist", pet_id)
            raise ValidationError(f"Pet {pet_id} does not exist.")
        return pet

    def _ensure_tag_unique(self, tag_code: str, exclude_id: Optional[int] = None) -> None:
        existing = self.gateway.find_by_exact_tag(tag_code)
        if existing is not None and (exclude_id is None or existing.id != exclude_id):
            logger.warning("Duplicate tag code {} (held by pet {})", tag_code, existing.id)
            raise ValidationError(f"A pet with tag code {tag_code} already exists.")

    @staticmethod
    def _validate(pet: Optional[Pet]) -> None:
        if pet is None:
            raise ValidationError("A pet is required.")
        pet.name = require_text(pet.name, "Name", PET_NAME_MAX)
        pet.species = require_text(pet.species, "Species", PET_SPECIES_MAX)
        pet.tag_code = require_text(pet.tag_code, "Tag code", PET_TAG_MAX)
