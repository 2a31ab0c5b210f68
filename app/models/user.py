from pydantic import BaseModel, EmailStr, Field
from uuid import uuid4

from app.models.common import to_iso, utcnow


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserInDB(BaseModel):
    user_id: str = Field(default_factory=lambda: uuid4().hex)
    name: str
    email: EmailStr
    password_hash: str
    created_at: str = Field(default_factory=lambda: to_iso(utcnow()))


class UserPublic(BaseModel):
    id: str
    name: str
    email: EmailStr
    createdAt: str

    @classmethod
    def from_item(cls, item: dict) -> "UserPublic":
        return cls(
            id=item["user_id"],
            name=item.get("name", ""),
            email=item["email"],
            createdAt=item.get("created_at", ""),
        )
