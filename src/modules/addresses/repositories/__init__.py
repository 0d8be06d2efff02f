"""Address book repositories package."""

from modules.addresses.repositories.django_repository import AddressDjangoRepository
from modules.addresses.repositories.interfaces import IAddressBook

__all__ = ["AddressDjangoRepository", "IAddressBook"]
