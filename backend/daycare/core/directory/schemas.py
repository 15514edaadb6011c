import uuid
from datetime import date
from pydantic import BaseModel


class StaffBrief(BaseModel):
    model_config = {"from_attributes": True}
    id: uuid.UUID
    first_name: str
    last_name: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class ClassroomBrief(BaseModel):
    model_config = {"from_attributes": True}
    id: uuid.UUID
    name: str


class ChildBrief(BaseModel):
    model_config = {"from_attributes": True}
    id: uuid.UUID
    first_name: str
    last_name: str
    date_of_birth: date | None = None
    photo_url: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
