# storefront/services/product_service.py
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from storefront.data.models.product import ColorVariantModel, ProductModel
from storefront.domain.errors import ProductNotFoundError
from storefront.domain.schemas import ColorVariantEdit, ProductCreate, ProductUpdate
from storefront.repos.product_repo import ProductRepo
from storefront.services.inventory_service import InventoryService
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ProductService:
    """
    Produkty: odczyt dla sklepu (stan tylko do wyswietlenia) i operacje admina.
    Pole stock nigdy nie jest nadpisywane wprost - tylko przez InventoryService.
    """

    def __init__(self, db: Session, inventory: InventoryService | None = None):
        self.repo = ProductRepo(db)
        self.inventory = inventory or InventoryService(db)

    def list_products(self) -> List[Dict[str, Any]]:
        return [self._serialize(p) for p in self.repo.list_products()]

    def get_product(self, product_id: int) -> Dict[str, Any]:
        product = self.repo.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return self._serialize(product)

    def create_product(self, payload: ProductCreate) -> Dict[str, Any]:
        variants_total = sum(v.stock for v in payload.color_variants)

        if payload.stock is None:
            stock = variants_total
        elif payload.color_variants and payload.stock != variants_total:
            raise ValueError(
                f"Stan zagregowany ({payload.stock}) musi byc rowny sumie stanow wariantow ({variants_total})"
            )
        else:
            stock = payload.stock

        product = ProductModel(
            name=payload.name,
            price=payload.price,
            stock=stock,
            color_variants=[
                ColorVariantModel(
                    name=v.name,
                    code=v.code.lower(),
                    stock=v.stock,
                    is_available=v.is_available,
                )
                for v in payload.color_variants
            ],
        )
        created = self.repo.create_product(product)
        logger.info(f"Product {created.id} '{created.name}' created with stock {created.stock}")
        return self._serialize(created)

    def update_product(self, product_id: int, payload: ProductUpdate) -> Dict[str, Any]:
        product = self.repo.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)

        changes = payload.model_dump(exclude_unset=True, exclude_none=True, exclude={"color_variants"})
        for field, value in changes.items():
            setattr(product, field, value)

        try:
            for edit in payload.color_variants or []:
                self._apply_variant_edit(product, edit)
        except ValueError:
            self.repo.rollback()
            raise
        self.repo.commit()

        logger.info(
            f"Product {product_id} updated: {sorted(changes)}, "
            f"variant edits: {len(payload.color_variants or [])}"
        )
        return self.get_product(product_id)

    def _apply_variant_edit(self, product: ProductModel, edit: ColorVariantEdit):
        variant = product.find_variant(edit.name)

        if variant is None:
            if edit.rename_to is not None:
                raise ValueError(f"Brak wariantu '{edit.name}' do zmiany nazwy")
            if edit.code is None:
                raise ValueError(f"Nowy wariant '{edit.name}' wymaga kodu koloru")
            # nowy wariant startuje od zera, stan dochodzi korekta magazynowa
            product.color_variants.append(
                ColorVariantModel(
                    name=edit.name,
                    code=edit.code.lower(),
                    stock=0,
                    is_available=True if edit.is_available is None else edit.is_available,
                )
            )
            logger.info(f"Product {product.id}: variant '{edit.name}' added with stock 0")
            return

        if edit.rename_to is not None and edit.rename_to.lower() != variant.name.lower():
            if product.find_variant(edit.rename_to) is not None:
                raise ValueError(f"Wariant '{edit.rename_to}' juz istnieje")
            self.repo.rename_variant_references(product.id, variant.name, edit.rename_to)
            logger.info(f"Product {product.id}: variant '{variant.name}' renamed to '{edit.rename_to}'")
            variant.name = edit.rename_to
        elif edit.rename_to is not None:
            variant.name = edit.rename_to

        if edit.code is not None:
            variant.code = edit.code.lower()
        if edit.is_available is not None:
            variant.is_available = edit.is_available

    def adjust_stock(self, product_id: int, delta: int, color_name: str | None = None) -> Dict[str, Any]:
        return self.inventory.adjust(product_id, delta, color_name=color_name, reason="admin")

    def list_adjustments(self, product_id: int):
        return self.inventory.list_adjustments(product_id)

    def find_discrepancies(self) -> List[Dict[str, Any]]:
        return self.inventory.find_discrepancies()

    @staticmethod
    def _serialize(product: ProductModel) -> Dict[str, Any]:
        return {
            "id": product.id,
            "name": product.name,
            "price": product.price,
            "stock": product.stock,
            "in_stock": product.stock > 0,
            "variant_stock_total": product.variant_stock_total,
            "color_variants": [
                {
                    "name": v.name,
                    "code": v.code,
                    "stock": v.stock,
                    "is_available": v.is_available,
                }
                for v in product.color_variants
            ],
        }
