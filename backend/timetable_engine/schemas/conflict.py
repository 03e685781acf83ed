from typing import Literal

from pydantic import BaseModel


class ConflictDetail(BaseModel):
    type: Literal["teacher", "room", "class"]
    message: str
    conflicting_entry_id: str
