"""
Pydantic schemas for transformed Senate records
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, List, Dict


class Party(BaseModel):
    acronym: str = ""
    name: Optional[str] = None


class Bloc(BaseModel):
    code: str = ""
    name: str = ""
    nickname: str = ""
    created_on: Optional[str] = None


class Phone(BaseModel):
    number: str = ""
    kind: str = "phone"  # "phone" or "fax"
    order: int = 0


class Exercise(BaseModel):
    """A period in which the senator actually held the seat"""
    code: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    leave_reason: Optional[str] = None
    leave_description: Optional[str] = None


class LegislatureTerm(BaseModel):
    number: str = ""
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class MandateMember(BaseModel):
    participation: str = ""
    code: str = ""
    name: str = ""


class Mandate(BaseModel):
    code: str
    state: str = ""
    participation: str = ""
    first_legislature: Optional[LegislatureTerm] = None
    second_legislature: Optional[LegislatureTerm] = None
    substitutes: List[MandateMember] = Field(default_factory=list)
    incumbent: Optional[MandateMember] = None


class SenatorSituation(BaseModel):
    exercises: List[Exercise] = Field(default_factory=list)
    on_leave: bool = False
    incumbent: bool = True
    substitute: bool = False
    board_member: bool = False
    leadership_member: bool = False


class Senator(BaseModel):
    """
    A sitting senator, reshaped from the open data API record.

    Ensures:
    - code is present, non-empty and usable as a document id
    - state is upper-case
    """

    code: str = Field(..., min_length=1)
    public_code: str = ""
    name: str = Field(..., min_length=1)
    full_name: str = ""
    gender: str = ""
    photo_url: str = ""
    page_url: str = ""
    personal_page_url: Optional[str] = None
    email: str = ""
    party: Party = Field(default_factory=Party)
    state: str = ""
    bloc: Optional[Bloc] = None
    phones: List[Phone] = Field(default_factory=list)
    situation: SenatorSituation = Field(default_factory=SenatorSituation)
    mandate: Optional[Mandate] = None
    details: Optional[Dict] = None

    @validator("code", "name", pre=True)
    def clean_required(cls, v):
        """Codes arrive as numbers or strings"""
        if v is None:
            return v
        return str(v).strip()

    @validator("code")
    def code_is_path_segment(cls, v):
        """The code becomes a document id in store addresses"""
        if "/" in v:
            raise ValueError(f"senator code must not contain '/': {v!r}")
        return v

    @validator("state")
    def upper_state(cls, v):
        return v.strip().upper()


class SenatorStatistics(BaseModel):
    """Counts computed over one transformed collection"""

    total: int = 0
    by_party: Dict[str, int] = Field(default_factory=dict)
    by_state: Dict[str, int] = Field(default_factory=dict)
    by_gender: Dict[str, int] = Field(default_factory=dict)
