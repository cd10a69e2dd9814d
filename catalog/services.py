import logging

from django.db.models import F

from imistore.exceptions import InsufficientStockError, NotFoundError
from .models import Product

logger = logging.getLogger(__name__)


def find_product(ref, for_update=False) -> Product:
    """Look up a product by primary key; malformed refs count as unknown."""
    try:
        pk = int(str(ref).strip())
    except (TypeError, ValueError):
        raise NotFoundError(f"Product not found: {ref}")
    qs = Product.objects.select_for_update() if for_update else Product.objects.all()
    product = qs.filter(pk=pk).first()
    if product is None:
        raise NotFoundError(f"Product not found: {ref}")
    return product


def take_stock(product_id, quantity: int) -> None:
    # Single conditional UPDATE so two buyers can never both take the last unit.
    updated = Product.objects.filter(pk=product_id, stock__gte=quantity).update(stock=F("stock") - quantity)
    if not updated:
        product = Product.objects.filter(pk=product_id).first()
        if product is None:
            raise NotFoundError(f"Product not found: {product_id}")
        raise InsufficientStockError(
            f'Insufficient stock for "{product.name}". Available: {product.stock}'
        )
    logger.debug("Took %s units of product %s", quantity, product_id)


def release_stock(product_id, quantity: int) -> None:
    updated = Product.objects.filter(pk=product_id).update(stock=F("stock") + quantity)
    if not updated:
        logger.warning("Could not return %s units to missing product %s", quantity, product_id)
