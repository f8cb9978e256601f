"""
Endpoints públicos de la integración con Jilt.

GET  /jilt/recuperar/?token=...&hash=...[&discount=...]
     Enlace de recuperación de carrito; siempre responde con un redirect.

GET|POST|PUT|DELETE /jilt/api/?resource=...
     API servidor a servidor. Autenticación: Authorization: Token <secret_key>

POST /jilt/cliente/
     Guarda nombre y email de un invitado en la sesión.
"""
import functools
import json
import logging

from django.conf import settings
from django.http import JsonResponse
from django.shortcuts import redirect
from django.urls import reverse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from .customer import clean_guest_customer
from .exceptions import IntegrationAPIError, JiltAPIError
from .integration_api import IntegrationAPI, check_token
from .services import get_services

logger = logging.getLogger(__name__)


def jilt_version_header(view):
    """Identifica las respuestas como generadas por la integración."""
    @functools.wraps(view)
    def wrapper(request, *args, **kwargs):
        response = view(request, *args, **kwargs)
        response['x-jilt-version'] = settings.JILT_VERSION
        return response
    return wrapper


@jilt_version_header
@require_GET
def recover_view(request):
    checkout_url = reverse('orders:checkout')
    token = request.GET.get('token')
    hash_value = request.GET.get('hash')
    if not token or not hash_value:
        return redirect(checkout_url)

    services = get_services(request)
    if services.client is None:
        logger.warning("Could not recreate cart: integration is not configured")
        return redirect(checkout_url)
    try:
        url = services.recovery().recover(token, hash_value, request.GET.get('discount'))
    except JiltAPIError as e:
        logger.warning("Could not recreate cart: %s", e.message)
        url = None
    return redirect(url or checkout_url)


@jilt_version_header
@csrf_exempt
@require_http_methods(['GET', 'POST', 'PUT', 'DELETE'])
def integration_api_view(request):
    services = get_services(request)
    if not check_token(request, services.integration.secret_key):
        logger.warning(
            "integration_api: token inválido desde %s",
            request.META.get('REMOTE_ADDR', '?'),
        )
        return JsonResponse({'ok': False, 'error': 'Unauthorized'}, status=401)

    data = {}
    if request.method in ('POST', 'PUT') and request.body:
        try:
            data = json.loads(request.body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return JsonResponse({'ok': False, 'error': 'Invalid JSON'}, status=400)
        if not isinstance(data, dict):
            return JsonResponse({'ok': False, 'error': 'Expected a JSON object'}, status=400)

    api = IntegrationAPI(services.integration)
    try:
        result = api.handle(
            request.method, request.GET.get('resource'),
            query=request.GET.dict(), data=data,
        )
    except IntegrationAPIError as e:
        return JsonResponse({'ok': False, 'error': e.message}, status=e.status)
    return JsonResponse({'ok': True, 'data': result})


@jilt_version_header
@require_POST
def set_customer_view(request):
    if request.user.is_authenticated:
        return JsonResponse(
            {'ok': False, 'error': 'No se puede cambiar el email de un usuario registrado.'},
            status=400,
        )
    services = get_services(request)
    services.state.set_customer(clean_guest_customer(request.POST))
    return JsonResponse({'ok': True, 'message': 'Datos del cliente guardados.'})
