"""schemas/travelers.py - Traveler records in the shape the Amadeus flight-orders API expects."""

from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, TypeAdapter

# Uppercase ISO 3166 alpha-2, e.g. "IN"
COUNTRY_CODE_PATTERN = r"^[A-Z]{2}$"


class TravelerName(BaseModel):
    firstName: str = Field(..., min_length=1)
    lastName: str = Field(..., min_length=1)


class TravelerPhone(BaseModel):
    deviceType: str = Field(..., min_length=1)
    countryCallingCode: str = Field(..., min_length=1, pattern=r"^\d+$")
    number: str = Field(..., min_length=1)


class TravelerContact(BaseModel):
    emailAddress: EmailStr
    phones: List[TravelerPhone] = Field(..., min_length=1)


class TravelerDocument(BaseModel):
    documentType: str = Field(..., min_length=1)
    birthPlace: str = Field(..., pattern=COUNTRY_CODE_PATTERN)
    issuanceLocation: str = Field(..., pattern=COUNTRY_CODE_PATTERN)
    issuanceDate: str = Field(..., min_length=1)
    number: str = Field(..., min_length=1)
    expiryDate: str = Field(..., min_length=1)
    issuanceCountry: str = Field(..., pattern=COUNTRY_CODE_PATTERN)
    validityCountry: str = Field(..., pattern=COUNTRY_CODE_PATTERN)
    nationality: str = Field(..., pattern=COUNTRY_CODE_PATTERN)
    holder: bool


class Traveler(BaseModel):
    # Amadeus order payloads carry more than the form edits, keep it
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    dateOfBirth: str = Field(..., min_length=1)
    name: TravelerName
    gender: str = Field(..., min_length=1)
    contact: TravelerContact
    documents: List[TravelerDocument] = Field(..., min_length=1)


TravelerList = TypeAdapter(Annotated[List[Traveler], Field(min_length=1)])
