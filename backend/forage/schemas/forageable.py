# backend/forage/schemas/forageable.py
from pydantic import BaseModel


class ForageableIn(BaseModel):
    # 空白チェックは ViewModel.is_valid_entry 側（呼び出し元の責務）
    name: str
    address: str
    in_season: bool = False
    notes: str = ""


class Forageable(BaseModel):
    id: int = 0  # 0 = 未保存（DB側で採番）
    name: str
    address: str
    in_season: bool
    notes: str = ""
