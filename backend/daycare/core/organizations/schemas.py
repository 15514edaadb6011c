from pydantic import BaseModel


class OrganizationInfo(BaseModel):
    model_config = {"from_attributes": True}

    name: str
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    phone: str | None = None
    email: str | None = None
    logo_url: str | None = None
    license_number: str | None = None
