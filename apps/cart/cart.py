"""
Carrito de compras en sesión.
Cada cambio publica CART_MUTATED o CART_EMPTIED para la integración con Jilt.
"""
from decimal import Decimal

from django.conf import settings

from apps.integrations.events import EventKind

TWO_PLACES = Decimal('0.01')


def _item_key(product_id, variant_id=None):
    return f"{product_id}_{variant_id or ''}".rstrip('_')


class Cart:
    """Manejo del carrito via sesión."""

    def __init__(self, request):
        self.request = request
        self.session = request.session
        cart = self.session.get(settings.CART_SESSION_ID)
        if not cart:
            cart = self.session[settings.CART_SESSION_ID] = {}
        self.cart = cart

    def add(self, product, quantity=1, variant_id=None, override=False, price=None):
        """Añadir o actualizar producto en carrito. price: override del precio unitario."""
        key = _item_key(product.id, variant_id)

        if key in self.cart:
            if override:
                self.cart[key]['quantity'] = quantity
                if price is not None:
                    self.cart[key]['price'] = str(price)
            else:
                self.cart[key]['quantity'] += quantity
        else:
            if price is None:
                price = product.price
                if variant_id:
                    price = product.variants.get(id=variant_id).price
            self.cart[key] = {
                'product_id': str(product.id),
                'variant_id': str(variant_id) if variant_id else None,
                'quantity': quantity,
                'price': str(price),
            }
        self.save()
        self._notify(EventKind.CART_MUTATED)

    def remove(self, product_id, variant_id=None):
        """Eliminar producto del carrito."""
        key = _item_key(product_id, variant_id)
        if key in self.cart:
            del self.cart[key]
            self.save()
            self._notify(EventKind.CART_MUTATED)

    def set_quantity(self, key, quantity):
        """Cambia la cantidad de una línea; 0 o menos la elimina."""
        if key not in self.cart:
            return False
        if quantity < 1:
            del self.cart[key]
        else:
            self.cart[key]['quantity'] = quantity
        self.save()
        self._notify(EventKind.CART_MUTATED)
        return True

    def clear(self):
        """Vacía el carrito y sus descuentos."""
        self.cart = self.session[settings.CART_SESSION_ID] = {}
        self.session.pop(settings.CART_DISCOUNTS_SESSION_ID, None)
        self.save()
        self._notify(EventKind.CART_EMPTIED)

    # ------------------------------------------------------------------
    # Descuentos
    # ------------------------------------------------------------------

    def get_discounts(self):
        return list(self.session.get(settings.CART_DISCOUNTS_SESSION_ID) or [])

    def apply_discount(self, code):
        """Aplica un cupón válido. Devuelve el Coupon o None."""
        from apps.coupons.models import Coupon

        code = (code or '').strip()
        if not code or self.is_empty():
            return None
        coupon = Coupon.objects.filter(code__iexact=code).first()
        if not coupon or not coupon.is_valid(self.get_subtotal()):
            return None
        discounts = self.get_discounts()
        if coupon.code not in discounts:
            discounts.append(coupon.code)
            self.session[settings.CART_DISCOUNTS_SESSION_ID] = discounts
            self.save()
            self._notify(EventKind.CART_MUTATED)
        return coupon

    def remove_discount(self, code):
        discounts = [c for c in self.get_discounts() if c.lower() != (code or '').lower()]
        if len(discounts) == len(self.get_discounts()):
            return False
        self.session[settings.CART_DISCOUNTS_SESSION_ID] = discounts
        self.save()
        self._notify(EventKind.CART_MUTATED)
        return True

    # ------------------------------------------------------------------
    # Contenido y totales
    # ------------------------------------------------------------------

    def __iter__(self):
        from apps.products.models import Product, ProductVariant

        product_ids = {item['product_id'] for item in self.cart.values()}
        products = {str(p.id): p for p in Product.objects.filter(id__in=product_ids)}
        variant_ids = {item['variant_id'] for item in self.cart.values() if item.get('variant_id')}
        variants = {str(v.id): v for v in ProductVariant.objects.filter(id__in=variant_ids)}

        for key, stored in self.cart.items():
            product = products.get(stored['product_id'])
            if not product:
                continue
            item = dict(stored)
            item['key'] = key
            item['product'] = product
            item['variant'] = variants.get(stored.get('variant_id') or '')
            item['price'] = Decimal(stored['price'])
            item['total_price'] = item['price'] * stored['quantity']
            yield item

    def __len__(self):
        return sum(item['quantity'] for item in self.cart.values())

    def is_empty(self):
        return not self.cart

    def get_subtotal(self):
        return sum(
            (Decimal(item['price']) * item['quantity'] for item in self.cart.values()),
            Decimal('0.00'),
        )

    def get_discounted_amount(self):
        from apps.coupons.models import Coupon

        subtotal = self.get_subtotal()
        discount = Decimal('0.00')
        for coupon in Coupon.objects.filter(code__in=self.get_discounts()):
            discount += coupon.get_discount(subtotal - discount)
        return min(discount, subtotal)

    def get_tax(self):
        taxable = self.get_subtotal() - self.get_discounted_amount()
        return (taxable * settings.CART_TAX_RATE).quantize(TWO_PLACES)

    def get_total(self):
        return self.get_subtotal() - self.get_discounted_amount() + self.get_tax()

    def save(self):
        self.session.modified = True

    def _notify(self, kind):
        from apps.integrations.services import emit
        emit(self.request, kind)
