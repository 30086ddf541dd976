import pytest

from estate_watch.models import Salutation
from estate_watch.utils.salutation import parse_salutation


@pytest.mark.parametrize("name,expected", [
    ("Herr Mustermann", Salutation("male", "Mustermann")),
    ("Frau Erika Musterfrau", Salutation("female", "Musterfrau")),
    ("Mr. Smith", Salutation("male", "Smith")),
    ("Mrs. Jane Doe", Salutation("female", "Doe")),
    ("Ms. Doe", Salutation("female", "Doe")),
    ("  herr   Müller  ", Salutation("male", "Müller")),
    ("FRAU Schulz", Salutation("female", "Schulz")),
])
def test_recognises_natural_persons(name, expected):
    assert parse_salutation(name) == expected


@pytest.mark.parametrize("name", [
    "ImmoScout GmbH",
    "",
    "   ",
    None,
    42,
    "Herr",
    "Herrmann Immobilien",
    "Frau Anna Maria Schmidt",
    "Dr. Schmidt",
])
def test_everything_else_is_not_a_person(name):
    assert parse_salutation(name) is None
