from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Index, text

from ..entities import PET_NAME_MAX, PET_SPECIES_MAX, PET_TAG_MAX
from ..extensions import db


class PetRow(db.Model):
    __tablename__ = "pets"

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(PET_NAME_MAX), nullable=False)
    species = db.Column(db.String(PET_SPECIES_MAX), nullable=False)
    tag_code = db.Column(db.String(PET_TAG_MAX), nullable=False)

    microchip_id = db.Column(
        db.Integer,
        db.ForeignKey("microchips.id"),
        nullable=True,
        index=True,
    )

    deleted = db.Column(db.Boolean, nullable=False, default=False, index=True)

    created_at = db.Column(
        db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    # tag codes only need to be unique among pets that are not soft-deleted
    __table_args__ = (
        Index(
            "uq_pets_tag_code_active",
            "tag_code",
            unique=True,
            sqlite_where=text("deleted = 0"),
            postgresql_where=text("deleted = false"),
        ),
        CheckConstraint("length(trim(tag_code)) > 0", name="ck_pet_tag_not_blank"),
    )

    microchip = db.relationship("MicrochipRow")
