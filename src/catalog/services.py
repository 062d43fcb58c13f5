"""Service functions for the catalog app."""
from django.core.exceptions import ValidationError

from core.exceptions import NotFound, ValidationFailed

from .models import Product


def get_owned_product(owner, product_id, *, for_update=False) -> Product:
    """Return the owner's product or raise ``NotFound``.

    Another owner's product is reported exactly like a missing one.
    """
    if not product_id:
        raise ValidationFailed("A product id is required.")
    qs = Product.objects.filter(owner=owner)
    if for_update:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=product_id)
    except (Product.DoesNotExist, ValidationError, ValueError, TypeError):
        raise NotFound(f"Product {product_id} not found.")
