from datetime import datetime, timezone

from sqlalchemy import CheckConstraint

from ..entities import CHIP_BRAND_MAX, CHIP_CODE_MAX
from ..extensions import db


class MicrochipRow(db.Model):
    __tablename__ = "microchips"

    id = db.Column(db.Integer, primary_key=True)

    code = db.Column(db.String(CHIP_CODE_MAX), nullable=False, index=True)
    brand = db.Column(db.String(CHIP_BRAND_MAX), nullable=False)

    deleted = db.Column(db.Boolean, nullable=False, default=False, index=True)

    created_at = db.Column(
        db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        CheckConstraint("length(trim(code)) > 0", name="ck_microchip_code_not_blank"),
        CheckConstraint("length(trim(brand)) > 0", name="ck_microchip_brand_not_blank"),
    )
