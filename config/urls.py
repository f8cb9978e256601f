from django.urls import path, include

urlpatterns = [
    path('tienda/', include('apps.products.urls')),
    path('carrito/', include('apps.cart.urls')),
    path('pedidos/', include('apps.orders.urls')),
    path('jilt/', include('apps.integrations.urls')),
]
