from decimal import Decimal

from django.db import models
from django.utils import timezone


class Coupon(models.Model):
    """Código de descuento aplicable al carrito."""
    DISCOUNT_TYPES = [
        ('percent', 'Porcentaje'),
        ('flat', 'Monto fijo'),
    ]
    STATUS_CHOICES = [
        ('active', 'Activo'),
        ('inactive', 'Inactivo'),
    ]

    code = models.CharField(max_length=50, unique=True, db_index=True)
    name = models.CharField(max_length=255, blank=True)
    discount_type = models.CharField(max_length=20, choices=DISCOUNT_TYPES)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    min_price = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal('0.00')
    )
    use_once = models.BooleanField(
        default=False, help_text='Cada cliente puede usarlo una sola vez'
    )
    max_uses = models.PositiveIntegerField(null=True, blank=True)
    uses = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    start = models.DateTimeField(null=True, blank=True)
    expiration = models.DateTimeField(null=True, blank=True)
    # ID remoto cuando el descuento fue creado por Jilt
    jilt_discount_id = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Cupón'
        verbose_name_plural = 'Cupones'

    def __str__(self):
        return self.code

    def is_valid(self, amount=None):
        if self.status != 'active':
            return False
        now = timezone.now()
        if self.start and now < self.start:
            return False
        if self.expiration and now > self.expiration:
            return False
        if self.max_uses and self.uses >= self.max_uses:
            return False
        if amount is not None and self.min_price and amount < self.min_price:
            return False
        return True

    def get_discount(self, amount):
        """Calcula el descuento aplicable sobre amount."""
        if not self.is_valid(amount):
            return Decimal('0.00')
        if self.discount_type == 'percent':
            return (amount * self.amount / 100).quantize(Decimal('0.01'))
        return min(self.amount, amount)

    def increase_usage(self):
        self.uses += 1
        self.save(update_fields=['uses', 'updated_at'])
