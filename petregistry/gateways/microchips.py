from __future__ import annotations

from typing import Optional

from loguru import logger

from ..entities import Microchip, RecordState
from ..errors import NotFoundError, PetRegistryError
from ..models.microchip import MicrochipRow
from .session import transaction


def microchip_from_row(row: MicrochipRow) -> Microchip:
    return Microchip(
        code=row.code,
        brand=row.brand,
        state=RecordState(id=row.id, deleted=bool(row.deleted)),
    )


class MicrochipGateway:
    """Reads and writes ``microchips`` rows; soft-deleted rows are invisible."""

    def insert(self, chip: Microchip) -> Microchip:
        try:
            with transaction("insert microchip") as session:
                row = MicrochipRow(code=chip.code, brand=chip.brand)
                session.add(row)
                session.flush()
                chip.state.id = row.id
                chip.state.deleted = False
        except PetRegistryError:
            chip.state.id = 0
            raise
        logger.debug("Inserted microchip row {}", chip.id)
        return chip

    def update(self, chip: Microchip) -> None:
        with transaction(f"update microchip {chip.id}"):
            count = MicrochipRow.query.filter_by(id=chip.id, deleted=False).update(
                {"code": chip.code, "brand": chip.brand},
                synchronize_session=False,
            )
            if count == 0:
                raise NotFoundError(f"Microchip {chip.id} not found.")

    def soft_delete(self, chip_id: int) -> None:
        with transaction(f"delete microchip {chip_id}"):
            count = MicrochipRow.query.filter_by(id=chip_id, deleted=False).update(
                {"deleted": True},
                synchronize_session=False,
            )
            if count == 0:
                raise NotFoundError(f"Microchip {chip_id} not found.")

    def get_by_id(self, chip_id: int) -> Optional[Microchip]:
        with transaction(f"load microchip {chip_id}"):
            row = MicrochipRow.query.filter_by(id=chip_id, deleted=False).first()
            return microchip_from_row(row) if row else None

    def get_all(self) -> list[Microchip]:
        with transaction("list microchips"):
            rows = (
                MicrochipRow.query.filter_by(deleted=False)
                .order_by(MicrochipRow.id)
                .all()
            )
            return [microchip_from_row(r) for r in rows]
