"""
Datos del cliente que se guardan en la sesión para identificar el carrito.
"""
import logging

from django.core.exceptions import ValidationError
from django.core.validators import validate_email

from .events import EventKind

logger = logging.getLogger(__name__)


def customer_from_user(user):
    return {
        'email': user.email,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'customer_id': user.pk,
    }


def clean_guest_customer(data):
    """first_name, last_name y email de un invitado; email inválido -> None."""
    email = (data.get('email') or '').strip()
    try:
        validate_email(email)
    except ValidationError:
        email = None
    return {
        'first_name': (data.get('first_name') or '').strip() or None,
        'last_name': (data.get('last_name') or '').strip() or None,
        'email': email,
    }


def on_user_logged_in(sender, request, user, **kwargs):
    """
    Al iniciar sesión se guarda el cliente en la sesión y después se
    sincroniza el carrito, en ese orden.
    """
    if request is None or not hasattr(request, 'session'):
        return
    from .services import emit, get_services

    services = get_services(request)
    services.state.bind_user(user)
    services.state.set_customer(customer_from_user(user))
    emit(request, EventKind.CART_MUTATED)
