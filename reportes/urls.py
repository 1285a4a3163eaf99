# reportes/urls.py
from django.urls import path
from . import views

app_name = 'reportes'
urlpatterns = [
    # Dashboard
    path('', views.dashboard, name='dashboard'),

    # Contadores en JSON para el refresco automático
    path('estadisticas/', views.estadisticas, name='estadisticas'),
]
