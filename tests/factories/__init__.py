"""Test data factories using polyfactory."""

from tests.factories.project import ProjectFactory, random_address
from tests.factories.user import UserFactory

__all__ = [
    "ProjectFactory",
    "UserFactory",
    "random_address",
]
