"""
Module catalog: create/update/delete modules keyed by (name, year, semester), plus read views.
Resources reference a module by its name string, so delete_module counts those references
itself before removing anything.
"""
import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from learnbridge.errors import ConflictError, NotFoundError, ValidationError
from learnbridge.models.module import MODULE_NAME_MAX, SEMESTERS, YEARS, Module
from learnbridge.models.resource import Resource
from learnbridge.models.user import User
from learnbridge.services import policy
from learnbridge.services.policy import Action
from learnbridge.services.queries import Page, PageRequest, paginate

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "A module with this name already exists for this year and semester"
IN_USE_MESSAGE = (
    "Cannot delete module. It has associated resources. Please delete or reassign the resources first."
)


def _clean(name: str | None, year: int | None, semester: int | None) -> tuple[str, int, int]:
    name = (name or "").strip()
    if not name or year is None or semester is None:
        raise ValidationError("Module name, year, and semester are required")
    if len(name) > MODULE_NAME_MAX:
        raise ValidationError(f"Module name must be at most {MODULE_NAME_MAX} characters", field="name")
    if year not in YEARS:
        raise ValidationError("Year must be an integer between 1 and 4", field="year")
    if semester not in SEMESTERS:
        raise ValidationError("Semester must be 1 or 2", field="semester")
    return name, year, semester


def _ensure_unique(db: Session, name: str, year: int, semester: int, exclude_id: uuid.UUID | None = None) -> None:
    q = db.query(Module).filter(Module.name == name, Module.year == year, Module.semester == semester)
    if exclude_id is not None:
        q = q.filter(Module.id != exclude_id)
    if q.first() is not None:
        raise ConflictError(DUPLICATE_MESSAGE)


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        # unique constraint hit by a concurrent create/update
        db.rollback()
        logger.warning("Module IntegrityError: %s", e)
        raise ConflictError(DUPLICATE_MESSAGE) from e


def get_module(db: Session, module_id: uuid.UUID) -> Module:
    module = db.query(Module).options(joinedload(Module.creator)).filter(Module.id == module_id).first()
    if module is None:
        raise NotFoundError("Module")
    return module


def create_module(db: Session, actor: User, name: str, year: int, semester: int) -> Module:
    policy.authorize(actor, Action.MANAGE_MODULES)
    name, year, semester = _clean(name, year, semester)
    _ensure_unique(db, name, year, semester)
    module = Module(name=name, year=year, semester=semester, created_by=actor.id)
    db.add(module)
    _commit(db)
    db.refresh(module)
    logger.info("Module %s created (%s, year %s, semester %s)", module.id, name, year, semester)
    return module


def update_module(db: Session, actor: User, module_id: uuid.UUID, name: str, year: int, semester: int) -> Module:
    policy.authorize(actor, Action.MANAGE_MODULES)
    name, year, semester = _clean(name, year, semester)
    module = get_module(db, module_id)
    _ensure_unique(db, name, year, semester, exclude_id=module.id)
    module.name, module.year, module.semester = name, year, semester
    _commit(db)
    db.refresh(module)
    return module


def count_references(db: Session, module: Module) -> int:
    """Resources whose module string equals this module's name."""
    return db.query(Resource).filter(Resource.module == module.name).count()


def delete_module(db: Session, actor: User, module_id: uuid.UUID) -> None:
    policy.authorize(actor, Action.MANAGE_MODULES)
    module = get_module(db, module_id)
    refs = count_references(db, module)
    if refs > 0:
        raise ConflictError(IN_USE_MESSAGE, error={"resource_count": refs})
    # resources placed before a rename still carry the id; drop it
    db.query(Resource).filter(Resource.module_id == module.id).update(
        {Resource.module_id: None}, synchronize_session=False
    )
    db.delete(module)
    db.commit()
    logger.info("Module %s deleted", module_id)


def list_modules(db: Session, year: int | None, semester: int | None, page_req: PageRequest) -> Page:
    q = db.query(Module).options(joinedload(Module.creator))
    if year is not None:
        q = q.filter(Module.year == year)
    if semester is not None:
        q = q.filter(Module.semester == semester)
    return paginate(q.order_by(Module.created_at.desc()), page_req)


def academic_structure(db: Session) -> dict[int, dict[int, list[str]]]:
    """year -> semester -> sorted module names."""
    structure: dict[int, dict[int, list[str]]] = {}
    for name, year, semester in db.query(Module.name, Module.year, Module.semester).all():
        names = structure.setdefault(year, {}).setdefault(semester, [])
        if name not in names:
            names.append(name)
    for semesters in structure.values():
        for names in semesters.values():
            names.sort()
    return {y: dict(sorted(s.items())) for y, s in sorted(structure.items())}
