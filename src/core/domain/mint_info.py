"""
MintInfo — учёт оплаты комиссии по классу актива

Создаётся лениво, один раз на актив, никогда не удаляется.
fee_paid имеет смысл только при Config.mint_info_permissioned == False.
"""

from pydantic import BaseModel, Field


class MintInfo(BaseModel):
    """Запись о классе актива (mint)."""

    asset: str = Field(..., min_length=1, description="Класс актива")
    address: str = Field(..., min_length=1, description="Производный адрес записи")
    fee_paid: bool = Field(False, description="Комиссия за актив уже оплачена")

    model_config = {"frozen": True}

    def mark_fee_paid(self) -> "MintInfo":
        """Новый экземпляр с fee_paid = True."""
        if self.fee_paid:
            return self
        return self.model_copy(update={"fee_paid": True})
