# app/schemas.py
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

from .enums import Availability, Skills, Tools

class ListingBase(BaseModel):
    author: str = Field(..., max_length=255)
    title: Optional[str] = None
    description: str = ""
    size: int = Field(1, ge=1)
    skills_possessed: List[Skills] = []
    skills_sought: List[Skills] = []
    preferred_tools: List[Tools] = []
    availability: Availability = Availability.FLEXIBLE
    languages: List[str] = []
    timezone_offsets: List[int] = []

class ListingCreate(ListingBase):
    pass

class ListingUpdate(BaseModel):
    author: Optional[str] = Field(None, max_length=255)
    title: Optional[str] = None
    description: Optional[str] = None
    size: Optional[int] = Field(None, ge=1)
    skills_possessed: Optional[List[Skills]] = None
    skills_sought: Optional[List[Skills]] = None
    preferred_tools: Optional[List[Tools]] = None
    availability: Optional[Availability] = None
    languages: Optional[List[str]] = None
    timezone_offsets: Optional[List[int]] = None

class ListingOut(ListingBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    author_id: str
    report_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    is_favourite: bool = False

class ReportRequest(BaseModel):
    id: int
