"""
Pedidos (registros de pago) de la tienda.
"""
import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.utils import timezone


class Order(models.Model):
    """Pedido principal. El estado sigue el ciclo de vida de un pago."""
    STATUS_CHOICES = [
        ('pending', 'Pendiente'),
        ('publish', 'Completado'),
        ('refunded', 'Reembolsado'),
        ('failed', 'Fallido'),
        ('abandoned', 'Abandonado'),
        ('revoked', 'Revocado'),
        ('preapproved', 'Preaprobado'),
        ('cancelled', 'Cancelado'),
        ('subscription', 'Suscripción'),
    ]
    COMPLETED_STATUSES = ('publish',)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL,
        null=True, blank=True, related_name='orders'
    )
    order_number = models.CharField(max_length=50, unique=True, db_index=True)
    payment_key = models.CharField(max_length=64, unique=True, db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    gateway = models.CharField(max_length=50, blank=True)
    # Cliente
    email = models.EmailField()
    first_name = models.CharField(max_length=100, blank=True)
    last_name = models.CharField(max_length=100, blank=True)
    # Totales
    subtotal = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    discount_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    tax_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    currency = models.CharField(max_length=3, default='USD')
    discount_codes = models.JSONField(default=list, blank=True)
    # Jilt
    jilt_order_id = models.PositiveBigIntegerField(null=True, blank=True)
    jilt_cart_token = models.CharField(max_length=255, blank=True, db_index=True)
    jilt_recovered = models.BooleanField(default=False)
    jilt_recovered_payment_id = models.PositiveBigIntegerField(
        null=True, blank=True,
        help_text='Pedido original (pendiente) que este pedido recuperó.'
    )
    jilt_recovered_in_payment = models.PositiveBigIntegerField(
        null=True, blank=True,
        help_text='Pedido en el que se completó la recuperación de este.'
    )
    jilt_cancelled_at = models.DateTimeField(null=True, blank=True)
    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    completed_at = models.DateTimeField(
        'Completado', null=True, blank=True,
        help_text='Fecha en que el pago se completó.',
    )

    class Meta:
        verbose_name = 'Pedido'
        verbose_name_plural = 'Pedidos'
        ordering = ['-created_at']

    def __str__(self):
        return f"Orden {self.order_number}"

    def save(self, *args, **kwargs):
        if not self.order_number:
            self.order_number = f"ORD-{timezone.now().strftime('%Y%m%d')}-{uuid.uuid4().hex[:8].upper()}"
        if not self.payment_key:
            self.payment_key = uuid.uuid4().hex
        super().save(*args, **kwargs)

    @property
    def is_complete(self):
        return self.status in self.COMPLETED_STATUSES

    def update_status(self, new_status, request=None):
        """
        Cambia el estado del pedido y publica PAYMENT_STATUS_CHANGED.
        Devuelve False si el estado no cambia.
        """
        from apps.integrations.events import EventKind
        from apps.integrations.services import emit

        old_status = self.status
        if new_status == old_status:
            return False
        self.status = new_status
        update_fields = ['status', 'updated_at']
        if new_status in self.COMPLETED_STATUSES and not self.completed_at:
            self.completed_at = timezone.now()
            update_fields.append('completed_at')
        self.save(update_fields=update_fields)
        emit(request, EventKind.PAYMENT_STATUS_CHANGED, order=self, old_status=old_status)
        return True

    def add_note(self, content):
        return OrderNote.objects.create(order=self, content=content)


class OrderItem(models.Model):
    """Línea de pedido."""
    order = models.ForeignKey(
        Order, on_delete=models.CASCADE, related_name='items'
    )
    product = models.ForeignKey(
        'products.Product', on_delete=models.SET_NULL, null=True, blank=True
    )
    variant = models.ForeignKey(
        'products.ProductVariant', on_delete=models.SET_NULL,
        null=True, blank=True
    )
    cart_key = models.CharField(max_length=100, blank=True)
    product_name = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField()
    price = models.DecimalField(max_digits=12, decimal_places=2)
    total = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        verbose_name = 'Línea de pedido'
        verbose_name_plural = 'Líneas de pedido'

    def __str__(self):
        return f"{self.product_name} x {self.quantity}"


class OrderNote(models.Model):
    """Nota interna asociada a un pedido."""
    order = models.ForeignKey(
        Order, on_delete=models.CASCADE, related_name='order_notes'
    )
    content = models.TextField('Contenido')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Nota de pedido'
        verbose_name_plural = 'Notas de pedido'
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"Nota - {self.order.order_number}"
