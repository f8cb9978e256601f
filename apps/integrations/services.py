"""
Raíz de composición de la integración con Jilt, una por petición.

La tienda publica eventos con emit(request, EventKind.X, ...) y los motores
de sincronización registrados en el bus de la petición los atienden.
"""
from .cart_sync import CartSyncEngine
from .checkout_sync import CheckoutSyncEngine
from .events import EventBus
from .integration import JiltIntegration
from .recovery import RecoveryEngine
from .state import SessionStore, StateGateway


class JiltServices:
    """Construye y conecta los componentes para una petición (o ninguna)."""

    def __init__(self, request=None, integration=None, client=None):
        self.request = request
        self.integration = integration or JiltIntegration()
        self.client = client if client is not None else self.integration.get_client()
        session = getattr(request, 'session', None) if request is not None else None
        self.state = StateGateway(SessionStore(session))
        self.state.bind_user(getattr(request, 'user', None))
        self.bus = EventBus()

        self.cart_sync = CartSyncEngine(
            self.client, self.state, self.integration, self.bus, request
        )
        self.checkout_sync = CheckoutSyncEngine(
            self.client, self.state, self.integration, self.bus, request
        )
        self.cart_sync.register(self.bus)
        self.checkout_sync.register(self.bus)

    def recovery(self):
        return RecoveryEngine(
            self.client, self.state, self.integration, self.cart_sync, self.request
        )


def get_services(request):
    """Servicios de la petición; sin petición se crean unos de un solo uso."""
    if request is None:
        return JiltServices()
    services = getattr(request, 'jilt', None)
    if services is None:
        services = JiltServices(request)
        request.jilt = services
    return services


def emit(request, kind, **payload):
    get_services(request).bus.publish(kind, **payload)
