from pydantic import BaseModel


class CategoryCreate(BaseModel):
    name: str


class AuthorCreate(BaseModel):
    full_name: str


class UserCreate(BaseModel):
    email: str
    full_name: str | None = None
