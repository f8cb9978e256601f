from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_POST

from apps.products.models import Product

from .cart import Cart


def _cart_json(cart, message=None, status=200):
    """Resumen del carrito para respuestas AJAX."""
    items = [
        {
            'key': item['key'],
            'product_id': item['product'].pk,
            'name': item['product'].name,
            'variant': item['variant'].attributes_display() if item['variant'] else '',
            'quantity': item['quantity'],
            'price': str(item['price']),
            'total': str(item['total_price']),
        }
        for item in cart
    ]
    data = {
        'ok': status < 400,
        'items': items,
        'count': len(cart),
        'discounts': cart.get_discounts(),
        'subtotal': str(cart.get_subtotal()),
        'discount': str(cart.get_discounted_amount()),
        'tax': str(cart.get_tax()),
        'total': str(cart.get_total()),
    }
    if message:
        data['message' if status < 400 else 'error'] = message
    return JsonResponse(data, status=status)


@require_GET
def cart_detail(request):
    return _cart_json(Cart(request))


@require_POST
def cart_add(request, product_id):
    cart = Cart(request)
    product = get_object_or_404(Product, id=product_id, is_active=True)
    try:
        quantity = int(request.POST.get('quantity', 1))
    except (TypeError, ValueError):
        quantity = 1
    quantity = max(1, min(quantity, 99))
    variant_id = request.POST.get('variant_id') or None
    if variant_id:
        variant = get_object_or_404(product.variants, id=variant_id, is_active=True)
        variant_id = variant.id
    cart.add(product, quantity=quantity, variant_id=variant_id)
    return _cart_json(cart, f'"{product.name}" añadido al carrito.')


@require_POST
def cart_remove(request, product_id):
    cart = Cart(request)
    variant_id = request.POST.get('variant_id') or None
    cart.remove(product_id, variant_id=variant_id)
    return _cart_json(cart, 'Producto eliminado del carrito.')


@require_POST
def cart_update_item(request, item_key):
    """Actualiza la cantidad de un ítem específico."""
    cart = Cart(request)
    try:
        qty = int(request.POST.get('quantity', 1))
    except (ValueError, TypeError):
        qty = 1
    if not cart.set_quantity(item_key, qty):
        return _cart_json(cart, 'Item no encontrado', status=404)
    return _cart_json(cart, 'Carrito actualizado.')


@require_POST
def cart_clear(request):
    cart = Cart(request)
    cart.clear()
    return _cart_json(cart, 'Carrito limpiado correctamente.')


@require_POST
def discount_apply(request):
    cart = Cart(request)
    coupon = cart.apply_discount(request.POST.get('code'))
    if coupon is None:
        return _cart_json(cart, 'Cupón inválido o expirado.', status=400)
    return _cart_json(cart, f'Cupón {coupon.code} aplicado.')


@require_POST
def discount_remove(request):
    cart = Cart(request)
    cart.remove_discount(request.POST.get('code'))
    return _cart_json(cart, 'Cupón eliminado.')
