# medilens/schemas/user.py
from pydantic import BaseModel, Field
from typing import Optional


class UserOut(BaseModel):
    id: str
    email: str
    name: str


class PreferenceIn(BaseModel):
    value: str = Field(max_length=2000)


class PreferenceOut(BaseModel):
    key: str
    value: Optional[str] = None
