"""
Query/filter assembly for resource listings.

ResourceFilter -> list of SQLAlchemy conditions (AND-ed); PageRequest -> offset/limit with
clamping; Page carries the slice plus total and page count. All listing views
(public, my-resources, pending, approved, module browse) go through list_resources.
"""
import math
import uuid
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import exists, func, literal, or_, select
from sqlalchemy.orm import Query, Session, joinedload

from learnbridge.config import settings
from learnbridge.errors import ValidationError
from learnbridge.models.resource import CATEGORIES, STATUSES, Resource

CATEGORY_WILDCARD = "all"


@dataclass
class ResourceFilter:
    status: str | None = None
    category: str | None = None
    year: int | None = None
    semester: int | None = None
    module: str | None = None
    search: str | None = None
    uploaded_by: uuid.UUID | None = None

    def __post_init__(self):
        if self.status is not None and self.status not in STATUSES:
            raise ValidationError(
                f"Invalid status '{self.status}'. Must be one of: {', '.join(STATUSES)}", field="status"
            )
        if self.category == CATEGORY_WILDCARD or self.category == "":
            self.category = None
        if self.category is not None and self.category not in CATEGORIES:
            raise ValidationError(
                f"Invalid category '{self.category}'. Must be one of: {', '.join(CATEGORIES)}, all",
                field="category",
            )
        if self.module is not None:
            self.module = self.module.strip() or None
        if self.search is not None:
            self.search = self.search.strip() or None


@dataclass
class PageRequest:
    page: int = 1
    limit: int = 0

    def __post_init__(self):
        # limit <= 0 falls back to the default page size; page < 1 is treated as the first page
        if self.limit is None or self.limit <= 0:
            self.limit = settings.default_page_size
        self.limit = min(self.limit, settings.max_page_size)
        if self.page is None or self.page < 1:
            self.page = 1

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class Page:
    items: list[Any]
    total: int
    page: int
    limit: int
    pages: int = field(init=False)

    def __post_init__(self):
        self.pages = math.ceil(self.total / self.limit) if self.limit else 0


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _tag_elements(dialect_name: str):
    """One row per element of the resource's tags array, column "value"."""
    if dialect_name == "postgresql":
        fn = func.json_array_elements_text(Resource.tags)
    else:
        fn = func.json_each(Resource.tags)
    return fn.table_valued("value").alias("tag")


def search_condition(search: str, dialect_name: str = "sqlite"):
    """Any whitespace-separated term found (case-insensitive) in title, description or one of the tags."""
    clauses = []
    for term in search.split():
        pattern = f"%{_escape_like(term)}%"
        tag = _tag_elements(dialect_name)
        clauses.extend([
            Resource.title.ilike(pattern, escape="\\"),
            Resource.description.ilike(pattern, escape="\\"),
            exists(select(literal(1)).select_from(tag).where(tag.c.value.ilike(pattern, escape="\\"))),
        ])
    return or_(*clauses)


def build_conditions(f: ResourceFilter, dialect_name: str = "sqlite") -> list:
    conditions = []
    if f.status is not None:
        conditions.append(Resource.status == f.status)
    if f.category is not None:
        conditions.append(Resource.category == f.category)
    if f.year is not None:
        conditions.append(Resource.year == f.year)
    if f.semester is not None:
        conditions.append(Resource.semester == f.semester)
    if f.module is not None:
        conditions.append(Resource.module == f.module)
    if f.uploaded_by is not None:
        conditions.append(Resource.uploaded_by == f.uploaded_by)
    if f.search:
        conditions.append(search_condition(f.search, dialect_name))
    return conditions


def paginate(q: Query, page_req: PageRequest) -> Page:
    total = q.order_by(None).count()
    items = q.offset(page_req.offset).limit(page_req.limit).all()
    return Page(items=items, total=total, page=page_req.page, limit=page_req.limit)


def list_resources(db: Session, f: ResourceFilter, page_req: PageRequest) -> Page:
    """Filtered page of resources, newest first, with uploader and reviewer loaded."""
    q = (
        db.query(Resource)
        .options(joinedload(Resource.uploader), joinedload(Resource.reviewer))
        .filter(*build_conditions(f, db.get_bind().dialect.name))
        .order_by(Resource.created_at.desc())
    )
    return paginate(q, page_req)
