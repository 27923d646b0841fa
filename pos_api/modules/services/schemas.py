from pydantic import BaseModel
from decimal import Decimal
from typing import List


class ServiceSuggestion(BaseModel):
    id: int
    line_id: str
    name: str
    price: Decimal
    fixed_price: bool

    model_config = {"from_attributes": True}


class ServiceSuggestionList(BaseModel):
    ok: bool = True
    services: List[ServiceSuggestion]
