"""
Modules API: public reads (list by year/semester, structure, by id); create/update/delete for resource managers.
"""
import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from learnbridge.database import get_db
from learnbridge.models.user import User
from learnbridge.schemas.common import Envelope, Pagination
from learnbridge.schemas.module import (
    AcademicStructureData,
    ModuleData,
    ModuleListData,
    ModuleRequest,
    ModuleResponse,
)
from learnbridge.services import catalog
from learnbridge.services.queries import PageRequest
from learnbridge.api.deps import get_current_user, page_params

router = APIRouter(prefix="/modules", tags=["modules"])


@router.post("", response_model=Envelope[ModuleData], status_code=status.HTTP_201_CREATED)
def create_module(
    data: ModuleRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    module = catalog.create_module(db, current_user, data.name, data.year, data.semester)
    return Envelope(message="Module created successfully", data=ModuleData(module=ModuleResponse.from_module(module)))


@router.get("", response_model=Envelope[ModuleListData])
def list_modules(
    year: int | None = None,
    semester: int | None = None,
    page_req: PageRequest = Depends(page_params),
    db: Session = Depends(get_db),
):
    """Modules filtered by year and/or semester, newest first."""
    page = catalog.list_modules(db, year, semester, page_req)
    return Envelope(data=ModuleListData(
        modules=[ModuleResponse.from_module(m) for m in page.items],
        pagination=Pagination.from_page(page),
    ))


@router.get("/structure", response_model=Envelope[AcademicStructureData])
def academic_structure(db: Session = Depends(get_db)):
    """Year -> semester -> module names, for browsing resources by academic placement."""
    structure = catalog.academic_structure(db)
    return Envelope(data=AcademicStructureData(structure={
        str(year): {str(sem): names for sem, names in semesters.items()}
        for year, semesters in structure.items()
    }))


@router.get("/{module_id}", response_model=Envelope[ModuleData])
def get_module(module_id: uuid.UUID, db: Session = Depends(get_db)):
    module = catalog.get_module(db, module_id)
    return Envelope(data=ModuleData(module=ModuleResponse.from_module(module)))


@router.put("/{module_id}", response_model=Envelope[ModuleData])
def update_module(
    module_id: uuid.UUID,
    data: ModuleRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    module = catalog.update_module(db, current_user, module_id, data.name, data.year, data.semester)
    return Envelope(message="Module updated successfully", data=ModuleData(module=ModuleResponse.from_module(module)))


@router.delete("/{module_id}", response_model=Envelope)
def delete_module(
    module_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    catalog.delete_module(db, current_user, module_id)
    return Envelope(message="Module deleted successfully")
