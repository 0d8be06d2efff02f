"""Catalog repositories package."""

from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.repositories.interfaces import ICatalogGateway

__all__ = ["ICatalogGateway", "ProductDjangoRepository"]
