"""
Module request/response schemas.
"""
from datetime import datetime

from pydantic import BaseModel, Field

from learnbridge.models.module import Module
from learnbridge.schemas.auth import UserSummary
from learnbridge.schemas.common import Pagination


class ModuleRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)  # trimmed to <= 100 by the catalog
    year: int
    semester: int


class ModuleResponse(BaseModel):
    id: str
    name: str
    year: int
    semester: int
    created_by: UserSummary | None = None
    created_at: datetime

    @classmethod
    def from_module(cls, m: Module) -> "ModuleResponse":
        return cls(
            id=str(m.id),
            name=m.name,
            year=m.year,
            semester=m.semester,
            created_by=UserSummary.from_user(m.creator),
            created_at=m.created_at,
        )


class ModuleData(BaseModel):
    module: ModuleResponse


class ModuleListData(BaseModel):
    modules: list[ModuleResponse]
    pagination: Pagination


class AcademicStructureData(BaseModel):
    """year -> semester -> module names (JSON object keys are strings)."""
    structure: dict[str, dict[str, list[str]]]
