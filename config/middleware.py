from apps.integrations.services import get_services


class JiltMiddleware:
    """
    Adjunta request.jilt (servicios de la integración) a cada petición y,
    para usuarios registrados con carrito, une la correlación de la sesión
    con la guardada en su cuenta.
    """
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        services = get_services(request)
        services.integration.apply_log_threshold()
        if request.user.is_authenticated:
            services.cart_sync.merge_logged_in_cart()
        return self.get_response(request)
