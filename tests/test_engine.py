import dataclasses
import datetime
import decimal
from typing import Optional

import pytest
import strawberry

from strawberry_autorelay import (
    InMemoryORMConnection,
    InvalidArgumentError,
    InvalidCursorError,
    RelayQueryEngine,
    UpstreamFetchError,
)
from strawberry_autorelay.cursor import encode_cursor
from strawberry_autorelay.engine import validate_arguments
from strawberry_autorelay.ordering import build_ordering
from strawberry_autorelay.orm.base import Page


@strawberry.type
class Person:
    id: int
    age: Optional[int]


@dataclasses.dataclass
class Team:
    people: list


@dataclasses.dataclass
class Args:
    first: Optional[int] = None
    after: Optional[str] = None
    last: Optional[int] = None
    before: Optional[str] = None


@pytest.fixture
def edge_connection(config):
    return config.dynamic_object_factory.make_edge_connection("TeamPeople", Person)


@pytest.fixture
def make_getter(edge_connection):
    def make_getter(order=None, orm=None):
        engine = RelayQueryEngine(orm or InMemoryORMConnection())
        return engine.auto_relay_factory(
            "people",
            lambda: Team,
            lambda: Person,
            options={"order": order} if order is not None else None,
            edge_connection=edge_connection,
        )

    return make_getter


def _ids(connection):
    return [edge.node.id for edge in connection.edges]


@pytest.mark.asyncio
async def test_first_page_then_next_page(make_getter):
    team = Team(people=[Person(id=1, age=30), Person(id=2, age=25), Person(id=3, age=20)])
    getter = make_getter({"age": "ASC"})

    page = await getter(team, Args(first=2))

    assert _ids(page) == [3, 2]
    assert page.page_info.has_next_page is True
    assert page.page_info.has_previous_page is False
    assert page.page_info.start_cursor == page.edges[0].cursor
    assert page.page_info.end_cursor == page.edges[-1].cursor

    page = await getter(team, Args(first=2, after=page.page_info.end_cursor))

    assert _ids(page) == [1]
    assert page.page_info.has_next_page is False
    assert page.page_info.has_previous_page is True


@pytest.mark.asyncio
async def test_forward_walk_visits_every_row_once(make_getter):
    ages = [40, 20, None, 20, 35, 20, None, 40, 18]
    team = Team(people=[Person(id=i, age=age) for i, age in enumerate(ages, 1)])
    getter = make_getter({"age": "DESC"})

    seen = []
    cursor = None
    while True:
        page = await getter(team, Args(first=2, after=cursor))
        seen.extend(_ids(page))
        if not page.page_info.has_next_page:
            break
        cursor = page.page_info.end_cursor

    assert seen == [1, 8, 5, 2, 4, 6, 9, 3, 7]


@pytest.mark.asyncio
async def test_default_order_is_primary_key(make_getter):
    team = Team(people=[Person(id=3, age=1), Person(id=1, age=2), Person(id=2, age=3)])

    page = await make_getter()(team, Args())

    assert _ids(page) == [1, 2, 3]
    assert page.page_info.has_next_page is False
    assert page.page_info.has_previous_page is False


@pytest.mark.asyncio
async def test_last(make_getter):
    team = Team(people=[Person(id=i, age=i * 10) for i in range(1, 6)])
    getter = make_getter({"age": "ASC"})

    page = await getter(team, Args(last=2))

    assert _ids(page) == [4, 5]
    assert page.page_info.has_previous_page is True
    assert page.page_info.has_next_page is False

    page = await getter(team, Args(last=2, before=page.page_info.start_cursor))

    assert _ids(page) == [2, 3]
    assert page.page_info.has_previous_page is True
    assert page.page_info.has_next_page is True

    page = await getter(team, Args(last=2, before=page.page_info.start_cursor))

    assert _ids(page) == [1]
    assert page.page_info.has_previous_page is False
    assert page.page_info.has_next_page is True


@pytest.mark.asyncio
async def test_after_and_before(make_getter):
    team = Team(people=[Person(id=i, age=None) for i in range(1, 7)])
    getter = make_getter()
    everything = await getter(team, Args())

    page = await getter(
        team,
        Args(after=everything.edges[0].cursor, before=everything.edges[4].cursor),
    )

    assert _ids(page) == [2, 3, 4]
    assert page.page_info.has_previous_page is True
    assert page.page_info.has_next_page is True


@pytest.mark.asyncio
async def test_empty_page(make_getter):
    page = await make_getter()(Team(people=[]), Args(first=10))

    assert page.edges == []
    assert page.page_info.start_cursor is None
    assert page.page_info.end_cursor is None
    assert page.page_info.has_next_page is False


@pytest.mark.asyncio
async def test_first_zero(make_getter):
    team = Team(people=[Person(id=1, age=1)])

    page = await make_getter()(team, Args(first=0))

    assert page.edges == []
    assert page.page_info.has_next_page is True


@pytest.mark.asyncio
async def test_first_and_last_are_mutually_exclusive(make_getter):
    with pytest.raises(InvalidArgumentError, match="mutually exclusive"):
        await make_getter()(Team(people=[]), Args(first=1, last=1))


@pytest.mark.parametrize(
    ("first", "last", "max_results", "match"),
    [
        (-1, None, None, "'first' must be a non-negative"),
        (None, -5, None, "'last' must be a non-negative"),
        (11, None, 10, "'first' cannot be higher than 10"),
        (None, 11, 10, "'last' cannot be higher than 10"),
    ],
)
def test_validate_arguments(first, last, max_results, match):
    with pytest.raises(InvalidArgumentError, match=match):
        validate_arguments(first=first, last=last, max_results=max_results)


def test_validate_arguments_accepts_limits():
    validate_arguments(first=10, last=None, max_results=10)
    validate_arguments(first=None, last=0, max_results=10)
    validate_arguments(first=None, last=None, max_results=None)


@pytest.mark.asyncio
async def test_max_results_is_enforced(make_getter):
    with pytest.raises(InvalidArgumentError):
        await make_getter()(Team(people=[]), Args(first=3), max_results=2)


class RecordingORMConnection(InMemoryORMConnection):
    def __init__(self):
        self.requests = []

    async def fetch_page(self, request):
        self.requests.append(request)
        return await super().fetch_page(request)


@pytest.mark.asyncio
async def test_invalid_cursor_fails_before_fetching(make_getter):
    orm = RecordingORMConnection()
    getter = make_getter(orm=orm)

    with pytest.raises(InvalidCursorError):
        await getter(Team(people=[]), Args(first=1, after="garbage"))

    assert orm.requests == []


@pytest.mark.asyncio
async def test_cursor_of_another_ordering_is_rejected(make_getter):
    team = Team(people=[Person(id=1, age=1), Person(id=2, age=2)])
    cursor = (await make_getter()(team, Args())).edges[0].cursor

    with pytest.raises(InvalidCursorError, match="does not match the ordering"):
        await make_getter({"age": "ASC"})(team, Args(after=cursor))


@pytest.mark.asyncio
async def test_page_request(make_getter):
    orm = RecordingORMConnection()
    team = Team(people=[Person(id=1, age=1)])

    await make_getter({"age": -1}, orm=orm)(team, Args(last=5))

    (request,) = orm.requests
    assert request.parent is team
    assert request.source == "people"
    assert request.node is Person
    assert request.through is None
    assert [(k.name, k.descending) for k in request.ordering] == [
        ("age", True),
        ("id", False),
    ]
    assert request.limit == 5
    assert request.backward is True
    assert request.after is None
    assert request.before is None


class BrokenORMConnection(InMemoryORMConnection):
    async def fetch_page(self, request):
        raise RuntimeError("connection reset")


@pytest.mark.asyncio
async def test_upstream_errors_are_wrapped(make_getter):
    getter = make_getter(orm=BrokenORMConnection())

    with pytest.raises(UpstreamFetchError, match="connection reset") as exc_info:
        await getter(Team(people=[]), Args(first=1))

    assert exc_info.value.field_name == "people"
    assert isinstance(exc_info.value.__cause__, RuntimeError)


class ShortPageORMConnection(InMemoryORMConnection):
    async def fetch_page(self, request):
        return Page(rows=[], has_more=True)


@pytest.mark.asyncio
async def test_has_more_comes_from_the_orm(make_getter):
    page = await make_getter(orm=ShortPageORMConnection())(Team(people=[]), Args(first=1))

    assert page.edges == []
    assert page.page_info.has_next_page is True


@strawberry.type
class Item:
    id: int
    price: decimal.Decimal
    added_at: datetime.datetime


@dataclasses.dataclass
class Shop:
    items: list


@pytest.fixture
def make_item_getter(config):
    edge_connection = config.dynamic_object_factory.make_edge_connection("ShopItems", Item)

    def make_item_getter(order):
        return RelayQueryEngine(InMemoryORMConnection()).auto_relay_factory(
            "items",
            lambda: Shop,
            lambda: Item,
            options={"order": order},
            edge_connection=edge_connection,
        )

    return make_item_getter


def _item(id_, price, added_at=None):
    return Item(
        id=id_,
        price=decimal.Decimal(price),
        added_at=added_at or datetime.datetime(2020, 1, 1, tzinfo=datetime.timezone.utc),
    )


@pytest.mark.asyncio
async def test_decimal_keys_are_ordered_by_value(make_item_getter):
    shop = Shop(items=[_item(1, "9"), _item(2, "10"), _item(3, "-2.5"), _item(4, "9.5")])
    getter = make_item_getter({"price": "ASC"})

    page = await getter(shop, Args())
    assert [edge.node.id for edge in page.edges] == [3, 1, 4, 2]

    page = await getter(shop, Args(first=2))
    assert [edge.node.id for edge in page.edges] == [3, 1]

    page = await getter(shop, Args(first=2, after=page.page_info.end_cursor))
    assert [edge.node.id for edge in page.edges] == [4, 2]
    assert page.page_info.has_next_page is False


@pytest.mark.asyncio
async def test_aware_datetimes_are_ordered_by_instant(make_item_getter):
    plus_two = datetime.timezone(datetime.timedelta(hours=2))
    shop = Shop(
        items=[
            # 08:00 UTC
            _item(1, "1", datetime.datetime(2020, 1, 1, 10, tzinfo=plus_two)),
            _item(2, "1", datetime.datetime(2020, 1, 1, 9, tzinfo=datetime.timezone.utc)),
            _item(3, "1", datetime.datetime(2020, 1, 1, 7, tzinfo=datetime.timezone.utc)),
        ],
    )
    getter = make_item_getter({"added_at": "ASC"})

    page = await getter(shop, Args(first=1))
    assert [edge.node.id for edge in page.edges] == [3]

    page = await getter(shop, Args(after=page.page_info.end_cursor))
    assert [edge.node.id for edge in page.edges] == [1, 2]


@pytest.mark.asyncio
async def test_cursor_value_of_the_wrong_type(make_getter):
    team = Team(people=[Person(id=1, age=30), Person(id=2, age=25)])
    ordering = build_ordering({"age": "ASC"}, tie_breaker="id")

    with pytest.raises(InvalidCursorError, match="Invalid cursor value"):
        await make_getter({"age": "ASC"})(
            team,
            Args(after=encode_cursor(ordering, ("x", 1))),
        )


@pytest.mark.asyncio
async def test_unparsable_decimal_cursor_value(make_item_getter):
    ordering = build_ordering({"price": "ASC"}, tie_breaker="id")

    with pytest.raises(InvalidCursorError, match="Invalid cursor value"):
        await make_item_getter({"price": "ASC"})(
            Shop(items=[_item(1, "9")]),
            Args(after=encode_cursor(ordering, ("nine", 1))),
        )
