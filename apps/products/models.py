"""
Catálogo de la tienda: productos simples y variables.
"""
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.urls import reverse
from django.utils.text import slugify


class Product(models.Model):
    """Producto principal."""
    TYPE_CHOICES = [
        ('simple', 'Simple'),
        ('variable', 'Variable'),
    ]

    name = models.CharField(max_length=255)
    slug = models.SlugField(unique=True, max_length=255)
    sku = models.CharField(max_length=100, blank=True)
    description = models.TextField(blank=True)
    regular_price = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    sale_price = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True,
        validators=[MinValueValidator(Decimal('0.00'))]
    )
    product_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='simple')
    image = models.ImageField(upload_to='products/', blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Producto'
        verbose_name_plural = 'Productos'
        ordering = ['-created_at']

    def __str__(self):
        return self.name

    def get_absolute_url(self):
        return reverse('products:detail', kwargs={'slug': self.slug})

    def save(self, *args, **kwargs):
        if not self.slug:
            base_slug = slugify(self.name)
            slug = base_slug
            counter = 1
            while Product.objects.filter(slug=slug).exclude(pk=self.pk).exists():
                slug = f'{base_slug}-{counter}'
                counter += 1
            self.slug = slug
        super().save(*args, **kwargs)

    @property
    def price(self):
        """Precio actual (oferta si es menor que el regular)."""
        if self.sale_price is not None and self.sale_price < self.regular_price:
            return self.sale_price
        return self.regular_price

    def get_image_url(self):
        return self.image.url if self.image else ''


class ProductVariant(models.Model):
    """Variantes de producto (para productos variables)."""
    product = models.ForeignKey(
        Product, on_delete=models.CASCADE, related_name='variants'
    )
    sku = models.CharField(max_length=100, blank=True)
    attributes = models.JSONField(default=dict)  # {"talla": "M", "color": "Rojo"}
    regular_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    sale_price = models.DecimalField(
        max_digits=12, decimal_places=2, null=True, blank=True
    )
    image = models.ImageField(upload_to='products/variants/', blank=True, null=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        verbose_name = 'Variante'
        verbose_name_plural = 'Variantes'

    def __str__(self):
        return f"{self.product.name} - {self.attributes_display() or 'Default'}"

    @property
    def price(self):
        if self.sale_price is not None and self.sale_price < self.regular_price:
            return self.sale_price
        return self.regular_price

    def get_image_url(self):
        return self.image.url if self.image else self.product.get_image_url()

    def attributes_display(self):
        return ', '.join(f"{k}: {v}" for k, v in self.attributes.items())
