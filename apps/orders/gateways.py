"""
Pasarelas de pago configuradas en settings.PAYMENT_GATEWAYS.
"""
from django.conf import settings

GATEWAY_SESSION_KEY = 'gateway'


def get_enabled_gateways():
    """Pasarelas habilitadas, en el orden de ENABLED_PAYMENT_GATEWAYS."""
    return {
        gateway_id: settings.PAYMENT_GATEWAYS[gateway_id]
        for gateway_id in settings.ENABLED_PAYMENT_GATEWAYS
        if gateway_id in settings.PAYMENT_GATEWAYS
    }


def is_gateway_active(gateway_id):
    return bool(gateway_id) and gateway_id in get_enabled_gateways()


def is_offsite(gateway_id):
    return bool(settings.PAYMENT_GATEWAYS.get(gateway_id, {}).get('offsite'))


def get_chosen_gateway(session):
    """Pasarela elegida en la sesión; si no es válida, la predeterminada."""
    chosen = session.get(GATEWAY_SESSION_KEY)
    if is_gateway_active(chosen):
        return chosen
    if is_gateway_active(settings.DEFAULT_PAYMENT_GATEWAY):
        return settings.DEFAULT_PAYMENT_GATEWAY
    enabled = list(get_enabled_gateways())
    return enabled[0] if enabled else ''
