import hashlib
import hmac
import json
import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import transaction
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.urls import reverse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.cart.cart import Cart
from apps.coupons.models import Coupon
from apps.integrations.events import EventKind
from apps.integrations.services import emit

from .gateways import (
    GATEWAY_SESSION_KEY,
    get_chosen_gateway,
    get_enabled_gateways,
    is_gateway_active,
    is_offsite,
)
from .models import Order, OrderItem

logger = logging.getLogger(__name__)


@require_http_methods(['GET', 'POST'])
def checkout_view(request):
    cart = Cart(request)
    if request.method == 'POST':
        return _place_order(request, cart)

    # Enlaces de recuperación: ?discount=CODIGO&payment-mode=paypal
    discount = request.GET.get('discount')
    if discount:
        cart.apply_discount(discount)
    payment_mode = request.GET.get('payment-mode')
    if is_gateway_active(payment_mode):
        request.session[GATEWAY_SESSION_KEY] = payment_mode

    # Cargar el checkout también sincroniza el carrito.
    emit(request, EventKind.CART_MUTATED)

    customer = request.session.get('customer') or {}
    return JsonResponse({
        'ok': True,
        'empty': cart.is_empty(),
        'count': len(cart),
        'discounts': cart.get_discounts(),
        'subtotal': str(cart.get_subtotal()),
        'discount': str(cart.get_discounted_amount()),
        'tax': str(cart.get_tax()),
        'total': str(cart.get_total()),
        'gateway': get_chosen_gateway(request.session),
        'gateways': {k: v['label'] for k, v in get_enabled_gateways().items()},
        'customer': {
            'email': customer.get('email') or '',
            'first_name': customer.get('first_name') or '',
            'last_name': customer.get('last_name') or '',
        },
    })


def _place_order(request, cart):
    if cart.is_empty():
        return JsonResponse({'ok': False, 'error': 'Tu carrito está vacío.'}, status=400)

    user = request.user if request.user.is_authenticated else None
    email = (request.POST.get('email') or (user.email if user else '')).strip()
    try:
        validate_email(email)
    except ValidationError:
        return JsonResponse({'ok': False, 'error': 'Ingresa un correo válido.'}, status=400)

    gateway = request.POST.get('gateway') or get_chosen_gateway(request.session)
    if not is_gateway_active(gateway):
        return JsonResponse({'ok': False, 'error': 'Método de pago no disponible.'}, status=400)

    with transaction.atomic():
        order = Order.objects.create(
            user=user,
            email=email,
            first_name=request.POST.get('first_name') or (user.first_name if user else ''),
            last_name=request.POST.get('last_name') or (user.last_name if user else ''),
            gateway=gateway,
            subtotal=cart.get_subtotal(),
            discount_total=cart.get_discounted_amount(),
            tax_total=cart.get_tax(),
            total=cart.get_total(),
            currency=settings.STORE_CURRENCY,
            discount_codes=cart.get_discounts(),
        )
        for item in cart:
            OrderItem.objects.create(
                order=order,
                product=item['product'],
                variant=item['variant'],
                cart_key=item['key'],
                product_name=item['product'].name,
                quantity=item['quantity'],
                price=item['price'],
                total=item['total_price'],
            )
        for coupon in Coupon.objects.filter(code__in=order.discount_codes):
            coupon.increase_usage()

    logger.info("Pedido %s creado (pasarela %s)", order.order_number, gateway)
    emit(request, EventKind.PAYMENT_INSERTED, order=order)
    cart.clear()

    # Pasarelas en sitio confirman el pago de inmediato; las externas
    # dejan el pedido pendiente hasta payment_notification_view.
    if not is_offsite(gateway):
        order.update_status('publish', request=request)

    return JsonResponse({
        'ok': True,
        'order_number': order.order_number,
        'payment_key': order.payment_key,
        'status': order.status,
        'receipt_url': f"{reverse('orders:receipt')}?payment_key={order.payment_key}",
    }, status=201)


@require_GET
def receipt_view(request):
    """Recibo del pedido identificado por su payment_key."""
    order = get_object_or_404(Order, payment_key=request.GET.get('payment_key') or '')
    return JsonResponse({
        'ok': True,
        'order_number': order.order_number,
        'status': order.status,
        'status_display': order.get_status_display(),
        'total': str(order.total),
        'currency': order.currency,
        'items': [
            {'name': item.product_name, 'quantity': item.quantity, 'total': str(item.total)}
            for item in order.items.all()
        ],
    })


def _verify_notification_signature(body, signature):
    """
    Firma de las notificaciones de pasarela:
      HMAC-SHA256(cuerpo crudo, PAYMENT_NOTIFICATION_SECRET) en hex.

    Sin secreto configurado no se acepta ninguna notificación.
    """
    secret = getattr(settings, 'PAYMENT_NOTIFICATION_SECRET', '').strip()
    if not secret:
        logger.warning("PAYMENT_NOTIFICATION_SECRET no configurado, notificación rechazada.")
        return False
    computed = hmac.new(secret.encode('utf-8'), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(computed, signature or '')


@csrf_exempt
@require_POST
def payment_notification_view(request):
    """
    Notificación server-to-server de una pasarela externa.
    Cuerpo JSON: {"payment_key": "...", "status": "publish"}.
    """
    if not _verify_notification_signature(
        request.body, request.headers.get('X-Payment-Signature')
    ):
        logger.warning("Firma de notificación de pago inválida.")
        return JsonResponse({'ok': False, 'error': 'Firma inválida.'}, status=401)

    try:
        body = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JsonResponse({'ok': False, 'error': 'JSON inválido.'}, status=400)
    if not isinstance(body, dict):
        return JsonResponse({'ok': False, 'error': 'JSON inválido.'}, status=400)

    status = body.get('status')
    if status not in dict(Order.STATUS_CHOICES):
        return JsonResponse({'ok': False, 'error': 'Estado desconocido.'}, status=400)

    order = get_object_or_404(Order, payment_key=str(body.get('payment_key') or ''))
    changed = order.update_status(status, request=request)
    if changed:
        logger.info("Pedido %s notificado como %s", order.order_number, status)
    return JsonResponse({
        'ok': True,
        'order_number': order.order_number,
        'status': order.status,
        'changed': changed,
    })
