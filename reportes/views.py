# reportes/views.py
import logging

from django.contrib import messages
from django.http import JsonResponse
from django.shortcuts import render
from django.utils import timezone

from consola.api import InventarioAPI, OrdenCompraAPI, ProductoAPI, ProveedorAPI
from consola.exceptions import ErrorBackend
from inventario.services import contar_activos

logger = logging.getLogger(__name__)


def _fuentes():
    inventario_api = InventarioAPI()
    ordenes_api = OrdenCompraAPI()
    return [
        ('productos', 'productos', ProductoAPI().listar),
        ('proveedores', 'proveedores', ProveedorAPI().listar),
        ('bodegas', 'bodegas', inventario_api.bodegas),
        ('ordenes', 'órdenes de compra', ordenes_api.listar),
        ('stock_critico', 'stock crítico', inventario_api.stock_critico),
        ('pendientes', 'órdenes pendientes', ordenes_api.pendientes),
    ]


def calcular_estadisticas():
    """
    Consulta todos los servicios y devuelve (estadisticas, errores).
    Un servicio que falla cuenta como 0 y agrega un mensaje a `errores`.
    """
    datos = {}
    errores = []
    for clave, descripcion, llamada in _fuentes():
        try:
            datos[clave] = llamada()
        except ErrorBackend as e:
            logger.warning("Dashboard: no se pudo cargar %s: %s", descripcion, e.mensaje)
            errores.append(f'No se pudo cargar {descripcion}: {e.mensaje}')
            datos[clave] = []

    estadisticas = {
        'total_productos': len(datos['productos']),
        'total_proveedores': len(datos['proveedores']),
        'total_bodegas': len(datos['bodegas']),
        'total_ordenes': len(datos['ordenes']),
        'stock_critico': len(datos['stock_critico']),
        'ordenes_pendientes': len(datos['pendientes']),
        'productos_activos': contar_activos(datos['productos']),
        'proveedores_activos': contar_activos(datos['proveedores']),
    }
    return estadisticas, errores


def alertas(estadisticas):
    """Avisos del dashboard derivados de los contadores."""
    avisos = []
    if estadisticas['ordenes_pendientes'] > 0:
        avisos.append({
            'nivel': 'warning',
            'titulo': 'Órdenes pendientes',
            'descripcion': f"{estadisticas['ordenes_pendientes']} órdenes esperando procesamiento",
        })
    if estadisticas['stock_critico'] > 0:
        avisos.append({
            'nivel': 'danger',
            'titulo': 'Alerta de stock crítico',
            'descripcion': f"{estadisticas['stock_critico']} productos con bajo stock",
        })
    if estadisticas['productos_activos'] > 0:
        avisos.append({
            'nivel': 'success',
            'titulo': 'Productos activos',
            'descripcion': f"{estadisticas['productos_activos']} productos en el sistema",
        })
    return avisos


def dashboard(request):
    """Vista principal: contadores, alertas y accesos rápidos"""
    estadisticas, errores = calcular_estadisticas()
    for error in errores:
        messages.warning(request, error)

    context = {
        'estadisticas': estadisticas,
        'alertas': alertas(estadisticas),
        'actualizado': timezone.localtime(),
    }
    return render(request, 'reportes/dashboard.html', context)


def estadisticas(request):
    """Los mismos contadores del dashboard en JSON, para refrescar la página."""
    datos, errores = calcular_estadisticas()
    return JsonResponse({
        'estadisticas': datos,
        'alertas': alertas(datos),
        'errores': errores,
        'actualizado': timezone.localtime().isoformat(),
    })
