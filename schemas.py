from pydantic import BaseModel, field_validator
from datetime import datetime

from validation import validate_url

class ShortenRequest(BaseModel):
    url: str

    @field_validator("url")
    @classmethod
    def check_url(cls, value: str) -> str:
        return validate_url(value.strip())

class ShortenResponse(BaseModel):
    code: str
    url: str
    short_url: str
    created_at: datetime

class MappingInfo(BaseModel):
    code: str
    url: str
    created_at: datetime
    hits: int
