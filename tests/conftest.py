import datetime

import pytest

from strawberry_autorelay import AutoRelayConfig, InMemoryORMConnection

from . import models


@pytest.fixture
def config():
    return AutoRelayConfig(orm=lambda: InMemoryORMConnection, microservice_name="test")


@pytest.fixture
def authors(db):
    return [
        models.Author.objects.create(id=1, name="Ursula", age=30),
        models.Author.objects.create(id=2, name="Octavia", age=25),
        models.Author.objects.create(id=3, name="Iain", age=20),
        models.Author.objects.create(id=4, name="Terry", age=None),
    ]


@pytest.fixture
def books(authors):
    author = authors[0]
    return [
        models.Book.objects.create(id=1, author=author, title="The Dispossessed", year=1974),
        models.Book.objects.create(id=2, author=author, title="The Lathe of Heaven", year=1971),
        models.Book.objects.create(id=3, author=author, title="Lavinia", year=2008),
        models.Book.objects.create(id=4, author=author, title="Always Coming Home", year=1985),
        models.Book.objects.create(id=5, author=author, title="Untitled", year=None),
        models.Book.objects.create(id=6, author=author, title="The Word for World", year=1971),
    ]


@pytest.fixture
def club(authors):
    club = models.Club.objects.create(id=1, name="Hugo")
    for author, joined_on, role in [
        (authors[0], datetime.date(2001, 1, 1), "founder"),
        (authors[2], datetime.date(2005, 5, 5), "member"),
        (authors[1], datetime.date(2003, 3, 3), "member"),
    ]:
        models.Membership.objects.create(
            club=club,
            author=author,
            joined_on=joined_on,
            role=role,
        )
    return club
