from __future__ import annotations

from typing import Optional

from loguru import logger
from sqlalchemy import func, or_
from sqlalchemy.orm import joinedload

from ..entities import Pet, RecordState
from ..errors import NotFoundError, PetRegistryError, ValidationError
from ..models.pet import PetRow
from .microchips import microchip_from_row
from .session import transaction


def pet_from_row(row: PetRow) -> Pet:
    # a chip deleted through the unsafe path still resolves, flagged deleted
    chip = microchip_from_row(row.microchip) if row.microchip is not None else None
    return Pet(
        name=row.name,
        species=row.species,
        tag_code=row.tag_code,
        microchip=chip,
        state=RecordState(id=row.id, deleted=bool(row.deleted)),
    )


def _microchip_ref(pet: Pet) -> Optional[int]:
    if pet.microchip is not None and pet.microchip.state.is_new:
        raise ValidationError("The microchip must be saved before a pet can reference it.")
    return pet.microchip_id


def _active_pets():
    return PetRow.query.options(joinedload(PetRow.microchip)).filter(
        PetRow.deleted.is_(False)
    )


class PetGateway:
    """Reads and writes ``pets`` rows, each read resolving its microchip."""

    def insert(self, pet: Pet) -> Pet:
        microchip_id = _microchip_ref(pet)
        try:
            with transaction("insert pet") as session:
                row = PetRow(
                    name=pet.name,
                    species=pet.species,
                    tag_code=pet.tag_code,
                    microchip_id=microchip_id,
                )
                session.add(row)
                session.flush()
                pet.state.id = row.id
                pet.state.deleted = False
        except PetRegistryError:
            pet.state.id = 0
            raise
        logger.debug("Inserted pet row {}", pet.id)
        return pet

    def update(self, pet: Pet) -> None:
        microchip_id = _microchip_ref(pet)
        with transaction(f"update pet {pet.id}"):
            count = PetRow.query.filter_by(id=pet.id, deleted=False).update(
                {
                    "name": pet.name,
                    "species": pet.species,
                    "tag_code": pet.tag_code,
                    "microchip_id": microchip_id,
                },
                synchronize_session=False,
            )
            if count == 0:
                raise NotFoundError(f"Pet {pet.id} not found.")

    def soft_delete(self, pet_id: int) -> None:
        with transaction(f"delete pet {pet_id}"):
            count = PetRow.query.filter_by(id=pet_id, deleted=False).update(
                {"deleted": True},
                synchronize_session=False,
            )
            if count == 0:
                raise NotFoundError(f"Pet {pet_id} not found.")

    def get_by_id(self, pet_id: int) -> Optional[Pet]:
        with transaction(f"load pet {pet_id}"):
            row = _active_pets().filter(PetRow.id == pet_id).first()
            return pet_from_row(row) if row else None

    def get_all(self) -> list[Pet]:
        with transaction("list pets"):
            rows = _active_pets().order_by(PetRow.id).all()
            return [pet_from_row(r) for r in rows]

    def search_by_name_or_species(self, text: str) -> list[Pet]:
        needle = text.strip().lower()
        with transaction("search pets"):
            rows = (
                _active_pets()
                .filter(
                    or_(
                        func.lower(PetRow.name).contains(needle, autoescape=True),
                        func.lower(PetRow.species).contains(needle, autoescape=True),
                    )
                )
                .order_by(PetRow.id)
                .all()
            )
            return [pet_from_row(r) for r in rows]

    def find_by_exact_tag(self, tag_code: str) -> Optional[Pet]:
        with transaction("find pet by tag"):
            row = _active_pets().filter(PetRow.tag_code == tag_code.strip()).first()
            return pet_from_row(row) if row else None
