import datetime
from typing import Optional

from pydantic import BaseModel, Field

# Fields are optional at the model level so a missing field is reported by
# the route with the same message as an empty one.


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class TenderCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    # inf/NaN would be stored but cannot be rendered back as JSON
    budget: Optional[float] = Field(None, allow_inf_nan=False)
    deadline: Optional[datetime.date] = None


class ApplicationCreate(BaseModel):
    proposal_text: Optional[str] = None


class StatusUpdate(BaseModel):
    status: Optional[str] = None
