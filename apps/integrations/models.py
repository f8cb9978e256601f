from django.conf import settings
from django.db import models


class IntegrationSettings(models.Model):
    """Configuración de la integración con Jilt (singleton)."""
    LOG_THRESHOLD_CHOICES = [
        ('off', 'Desactivado'),
        ('debug', 'Debug'),
        ('info', 'Info'),
        ('warning', 'Warning'),
        ('error', 'Error'),
    ]

    secret_key = models.CharField('Clave secreta', max_length=255, blank=True)
    shop_id = models.PositiveBigIntegerField('ID de tienda en Jilt', null=True, blank=True)
    shop_domain = models.CharField('Dominio vinculado', max_length=255, blank=True)
    public_key = models.CharField('Clave pública', max_length=255, blank=True)
    is_disabled = models.BooleanField('Desactivada', default=False)
    log_threshold = models.CharField(
        'Nivel de log', max_length=10, choices=LOG_THRESHOLD_CHOICES, default='info'
    )
    # Claves secretas anteriores, en orden de rotación. Nunca se podan.
    secret_key_stash = models.JSONField(default=list, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Configuración de Jilt'
        verbose_name_plural = 'Configuración de Jilt'

    def __str__(self):
        return f"Jilt (tienda {self.shop_id or 'sin vincular'})"

    @classmethod
    def get(cls):
        """Retorna la instancia única de configuración."""
        obj, _ = cls.objects.get_or_create(
            pk=1, defaults={'secret_key': getattr(settings, 'JILT_SECRET_KEY', '')}
        )
        return obj


class CartCorrelation(models.Model):
    """
    Copia durable, por usuario, de la correlación carrito/pedido remoto.
    Permite retomar el carrito en otra sesión y resolver a qué usuario
    pertenece un cart_token durante la recuperación.
    """
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE,
        related_name='jilt_cart'
    )
    cart_token = models.CharField(max_length=255, blank=True, db_index=True)
    jilt_order_id = models.PositiveBigIntegerField(null=True, blank=True)
    pending_recovery = models.BooleanField(default=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Correlación de carrito'
        verbose_name_plural = 'Correlaciones de carrito'

    def __str__(self):
        return f"{self.user} → {self.cart_token or '-'}"
