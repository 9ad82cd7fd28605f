"""Fixture plugins shared by every test tier."""

pytest_plugins = [
    "tests.fixtures.sqlite",
    "tests.fixtures.stores",
]
