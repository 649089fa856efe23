# storefront/schemas/address.py
from pydantic import BaseModel, ConfigDict, Field


class AddressBase(BaseModel):
    primary_address: str = Field(..., min_length=1, max_length=255)
    secondary_address: str | None = Field(None, max_length=255)
    city: str = Field(..., min_length=1, max_length=120)
    state: str | None = Field(None, max_length=120)
    postal_code: str = Field(..., min_length=1, max_length=30)
    country: str = Field(..., min_length=1, max_length=120)


class AddressPayload(AddressBase):
    pass


class AddressRead(AddressBase):
    model_config = ConfigDict(from_attributes=True)


class AddressDraftFields(BaseModel):
    # Un perfil puede tener la dirección incompleta
    primary_address: str | None = None
    secondary_address: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None

    model_config = ConfigDict(from_attributes=True)
