"""
Listing filters and pagination over a real SQLite database.
"""
from datetime import datetime, timedelta, timezone

import pytest

from learnbridge.errors import ValidationError
from learnbridge.models.resource import STATUS_APPROVED, STATUS_PENDING, STATUS_REJECTED
from learnbridge.services.queries import Page, PageRequest, ResourceFilter, list_resources

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def numbered(make_resource, student):
    """25 approved resources "Item 1".."Item 25", Item 25 newest."""
    return [
        make_resource(
            student,
            title=f"Item {i}",
            status=STATUS_APPROVED,
            created_at=BASE_TIME + timedelta(minutes=i),
        )
        for i in range(1, 26)
    ]


def test_second_page_of_25(db, numbered):
    page = list_resources(db, ResourceFilter(status=STATUS_APPROVED), PageRequest(page=2, limit=10))
    assert page.total == 25
    assert page.pages == 3
    # newest first: page 2 holds the 11th..20th newest
    assert [r.title for r in page.items] == [f"Item {i}" for i in range(15, 5, -1)]


def test_page_beyond_range_is_empty(db, numbered):
    page = list_resources(db, ResourceFilter(), PageRequest(page=9, limit=10))
    assert page.items == []
    assert page.total == 25


def test_status_filter_never_leaks_other_statuses(db, make_resource, student):
    make_resource(student, status=STATUS_PENDING)
    make_resource(student, status=STATUS_APPROVED)
    make_resource(student, status=STATUS_REJECTED)
    make_resource(student, status=STATUS_PENDING)
    page = list_resources(db, ResourceFilter(status=STATUS_PENDING), PageRequest())
    assert page.total == 2
    assert {r.status for r in page.items} == {STATUS_PENDING}


def test_filters_combine(db, make_resource, student, other_student):
    make_resource(student, category="lecture", year=2, semester=1, module="Algorithms")
    make_resource(student, category="tutorial", year=2, semester=1, module="Algorithms")
    make_resource(other_student, category="lecture", year=2, semester=2, module="Algorithms")
    make_resource(other_student, category="lecture", year=2, semester=1, module="Networks")

    f = ResourceFilter(category="lecture", year=2, semester=1, module="Algorithms")
    assert list_resources(db, f, PageRequest()).total == 1
    assert list_resources(db, ResourceFilter(uploaded_by=other_student.id), PageRequest()).total == 2
    # "all" is the category wildcard
    assert list_resources(db, ResourceFilter(category="all", module="Algorithms"), PageRequest()).total == 3


def test_search_matches_title_description_and_tags(db, make_resource, student):
    make_resource(student, title="Graph theory", description="Shortest paths")
    make_resource(student, title="Intro", description="Binary search trees")
    make_resource(student, title="Misc", description="Other", tags=["dijkstra", "exam"])
    make_resource(student, title="Unrelated", description="Nothing here")

    def titles(search):
        return {r.title for r in list_resources(db, ResourceFilter(search=search), PageRequest()).items}

    assert titles("graph") == {"Graph theory"}
    assert titles("TREES") == {"Intro"}
    assert titles("dijkstra") == {"Misc"}
    # any term may match
    assert titles("graph trees") == {"Graph theory", "Intro"}


def test_search_treats_like_wildcards_literally(db, make_resource, student):
    make_resource(student, title="100% coverage")
    make_resource(student, title="Plain title")
    page = list_resources(db, ResourceFilter(search="%"), PageRequest())
    assert [r.title for r in page.items] == ["100% coverage"]


def test_search_matches_non_ascii_tags(db, make_resource, student):
    make_resource(student, title="Statistik", tags=["análisis", "übung"])
    make_resource(student, title="Other")
    page = list_resources(db, ResourceFilter(search="análisis"), PageRequest())
    assert [r.title for r in page.items] == ["Statistik"]


@pytest.mark.parametrize("term", ["[", "\"", ",", "]"])
def test_search_ignores_tag_storage_syntax(db, make_resource, student, term):
    make_resource(student, title="Untagged")
    make_resource(student, title="Tagged", tags=["alpha", "beta"])
    assert list_resources(db, ResourceFilter(search=term), PageRequest()).total == 0


def test_invalid_status_and_category_rejected():
    with pytest.raises(ValidationError):
        ResourceFilter(status="archived")
    with pytest.raises(ValidationError):
        ResourceFilter(category="video")


@pytest.mark.parametrize("limit, expected", [(0, 10), (-5, 10), (25, 25), (1000, 100)])
def test_page_request_clamps_limit(limit, expected):
    assert PageRequest(page=1, limit=limit).limit == expected


def test_page_request_clamps_page():
    req = PageRequest(page=0, limit=10)
    assert req.page == 1
    assert req.offset == 0
    assert PageRequest(page=3, limit=10).offset == 20


def test_page_count():
    assert Page(items=[], total=0, page=1, limit=10).pages == 0
    assert Page(items=[], total=10, page=1, limit=10).pages == 1
    assert Page(items=[], total=11, page=1, limit=10).pages == 2
