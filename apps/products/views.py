from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET

from .models import Product


@require_GET
def product_detail(request, slug):
    """Ficha de producto en JSON (incluye variantes activas)."""
    product = get_object_or_404(Product, slug=slug, is_active=True)
    variants = [
        {
            'id': v.pk,
            'sku': v.sku,
            'attributes': v.attributes,
            'price': str(v.price),
        }
        for v in product.variants.filter(is_active=True)
    ]
    return JsonResponse({
        'id': product.pk,
        'name': product.name,
        'sku': product.sku,
        'price': str(product.price),
        'image_url': product.get_image_url(),
        'variants': variants,
    })
