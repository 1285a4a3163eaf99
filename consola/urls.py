# consola/urls.py
from django.urls import path, include
from django.views.generic import RedirectView

urlpatterns = [
    # Ruta raíz - redirige al dashboard
    path('', RedirectView.as_view(pattern_name='reportes:dashboard', permanent=False), name='inicio'),

    path('inventario/', include('inventario.urls', namespace='inventario')),
    path('compras/', include('compras.urls', namespace='compras')),
    path('reportes/', include('reportes.urls', namespace='reportes')),
]
