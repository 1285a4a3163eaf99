from unittest import mock

from django.contrib.messages import get_messages
from django.test import SimpleTestCase
from django.urls import reverse

from consola.exceptions import ServicioNoDisponible
from .views import alertas


@mock.patch('reportes.views.OrdenCompraAPI')
@mock.patch('reportes.views.InventarioAPI')
@mock.patch('reportes.views.ProveedorAPI')
@mock.patch('reportes.views.ProductoAPI')
class DashboardTestCase(SimpleTestCase):

    def configurar(self, ProductoAPI, ProveedorAPI, InventarioAPI, OrdenCompraAPI):
        ProductoAPI.return_value.listar.return_value = [
            {'id': 1, 'estado': 'ACTIVO'}, {'id': 2, 'estado': 'ACTIVO'}, {'id': 3, 'estado': 'INACTIVO'},
        ]
        ProveedorAPI.return_value.listar.return_value = [{'id': 1, 'estado': 'ACTIVO'}]
        InventarioAPI.return_value.bodegas.return_value = [{'id': 1}, {'id': 2}]
        InventarioAPI.return_value.stock_critico.return_value = [{'id': 5}]
        OrdenCompraAPI.return_value.listar.return_value = [{'id': 1}, {'id': 2}, {'id': 3}, {'id': 4}]
        OrdenCompraAPI.return_value.pendientes.return_value = [{'id': 1}]

    def test_contadores(self, ProductoAPI, ProveedorAPI, InventarioAPI, OrdenCompraAPI):
        self.configurar(ProductoAPI, ProveedorAPI, InventarioAPI, OrdenCompraAPI)
        response = self.client.get(reverse('reportes:dashboard'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context['estadisticas'], {
            'total_productos': 3,
            'total_proveedores': 1,
            'total_bodegas': 2,
            'total_ordenes': 4,
            'stock_critico': 1,
            'ordenes_pendientes': 1,
            'productos_activos': 2,
            'proveedores_activos': 1,
        })
        self.assertEqual([a['titulo'] for a in response.context['alertas']],
                         ['Órdenes pendientes', 'Alerta de stock crítico', 'Productos activos'])

    def test_servicio_caido_cuenta_cero(self, ProductoAPI, ProveedorAPI, InventarioAPI, OrdenCompraAPI):
        self.configurar(ProductoAPI, ProveedorAPI, InventarioAPI, OrdenCompraAPI)
        ProveedorAPI.return_value.listar.side_effect = ServicioNoDisponible('proveedores')
        response = self.client.get(reverse('reportes:dashboard'))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context['estadisticas']['total_proveedores'], 0)
        self.assertEqual(response.context['estadisticas']['total_productos'], 3)
        avisos = [str(m) for m in get_messages(response.wsgi_request)]
        self.assertEqual(len(avisos), 1)
        self.assertIn('No se pudo cargar proveedores', avisos[0])

    def test_estadisticas_json(self, ProductoAPI, ProveedorAPI, InventarioAPI, OrdenCompraAPI):
        self.configurar(ProductoAPI, ProveedorAPI, InventarioAPI, OrdenCompraAPI)
        InventarioAPI.return_value.stock_critico.side_effect = ServicioNoDisponible('inventario')
        response = self.client.get(reverse('reportes:estadisticas'))
        data = response.json()
        self.assertEqual(data['estadisticas']['total_ordenes'], 4)
        self.assertEqual(data['estadisticas']['stock_critico'], 0)
        self.assertEqual(len(data['errores']), 1)


class AlertasTestCase(SimpleTestCase):

    def test_sin_alertas(self):
        estadisticas = {'ordenes_pendientes': 0, 'stock_critico': 0, 'productos_activos': 0}
        self.assertEqual(alertas(estadisticas), [])

    def test_alerta_de_stock_critico(self):
        avisos = alertas({'ordenes_pendientes': 0, 'stock_critico': 4, 'productos_activos': 0})
        self.assertEqual(avisos[0]['nivel'], 'danger')
        self.assertEqual(avisos[0]['descripcion'], '4 productos con bajo stock')


class InicioTestCase(SimpleTestCase):

    def test_raiz_redirige_al_dashboard(self):
        response = self.client.get('/')
        self.assertRedirects(response, reverse('reportes:dashboard'), fetch_redirect_response=False)
