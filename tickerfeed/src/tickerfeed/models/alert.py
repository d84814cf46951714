from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator

AlertCondition = Literal["lesser", "equal", "greater"]
AlertFrequency = Literal["minute", "hour", "day"]

class Alert(BaseModel):
    """
    Price alert for one symbol on one user's watchlist.
    A user holds at most one alert per symbol.
    """
    user_id: str = Field(min_length=1)
    symbol: str = Field(min_length=1)
    company: Optional[str] = None
    alert_price: float = Field(ge=0)
    condition: AlertCondition = "greater"
    frequency: AlertFrequency = "day"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("symbol", mode="before")
    @classmethod
    def _clean_symbol(cls, v):
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator("company", mode="before")
    @classmethod
    def _clean_company(cls, v):
        if isinstance(v, str):
            return v.strip() or None
        return v

    def is_triggered(self, price: float) -> bool:
        if self.condition == "lesser":
            return price < self.alert_price
        if self.condition == "equal":
            return abs(price - self.alert_price) < 1e-9
        return price > self.alert_price
