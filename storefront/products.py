import logging
from typing import List

from .errors import ResourceNotFoundError
from .models import Product
from .schemas import ProductIn, ProductOut
from .stores import ProductStore

logger = logging.getLogger(__name__)


class ProductService:
    """Catalog CRUD. Placed orders keep their own copies of name and price."""

    def __init__(self, products: ProductStore):
        self.products = products

    def get_all(self) -> List[ProductOut]:
        return [ProductOut.model_validate(p) for p in self.products.find_all()]

    def get_by_id(self, product_id: int) -> ProductOut:
        p = self.products.find_by_id(product_id)
        if p is None:
            raise ResourceNotFoundError("Product", product_id)
        return ProductOut.model_validate(p)

    def create(self, payload: ProductIn) -> ProductOut:
        p = self.products.save(Product(name=payload.name, price=payload.price))
        logger.info("product %s created", p.id)
        return ProductOut.model_validate(p)

    def update(self, product_id: int, payload: ProductIn) -> ProductOut:
        p = self.products.find_by_id(product_id)
        if p is None:
            raise ResourceNotFoundError("Product", product_id)
        p.name = payload.name
        p.price = payload.price
        p = self.products.save(p)
        logger.info("product %s updated", p.id)
        return ProductOut.model_validate(p)

    def delete(self, product_id: int) -> None:
        if not self.products.exists_by_id(product_id):
            raise ResourceNotFoundError("Product", product_id)
        self.products.delete_by_id(product_id)
        logger.info("product %s deleted", product_id)
