import json
from unittest import mock

import requests
from django.test import RequestFactory, SimpleTestCase, override_settings

from .api import BodegaAPI, InventarioAPI, OrdenCompraAPI, ProductoAPI, ProveedorAPI
from .exceptions import ErrorBackend, ServicioNoDisponible
from .middleware import ErrorBackendMiddleware


def respuesta(status=200, data=None, texto=''):
    """Arma un requests.Response sin pasar por la red."""
    response = requests.Response()
    response.status_code = status
    response._content = json.dumps(data).encode() if data is not None else texto.encode()
    response.encoding = 'utf-8'
    return response


def sesion(*respuestas, error=None):
    session = requests.Session()
    session.request = mock.Mock(side_effect=error) if error else mock.Mock(side_effect=list(respuestas))
    return session


@override_settings(API_TIMEOUT=5)
class ClienteAPITestCase(SimpleTestCase):

    def test_listar_usa_url_base_y_timeout(self):
        session = sesion(respuesta(data=[{'id': 1, 'nombre': 'Laptop'}]))
        api = ProductoAPI(base_url='http://productos/api/productos/', session=session)

        self.assertEqual(api.listar(), [{'id': 1, 'nombre': 'Laptop'}])
        session.request.assert_called_once_with(
            'GET', 'http://productos/api/productos', params=None, json=None, timeout=5
        )

    def test_crear_envia_json(self):
        session = sesion(respuesta(201, data={'id': 9, 'nombre': 'Mouse'}))
        api = ProductoAPI(base_url='http://p/api/productos', session=session)

        creado = api.crear({'nombre': 'Mouse'})

        self.assertEqual(creado['id'], 9)
        args, kwargs = session.request.call_args
        self.assertEqual(args, ('POST', 'http://p/api/productos'))
        self.assertEqual(kwargs['json'], {'nombre': 'Mouse'})

    def test_respuesta_vacia_devuelve_none(self):
        api = ProductoAPI(base_url='http://p/api/productos', session=sesion(respuesta(204)))
        self.assertIsNone(api.eliminar(3))

    def test_lista_con_formato_invalido(self):
        api = ProveedorAPI(base_url='http://p/api/proveedores', session=sesion(respuesta(data={'id': 1})))
        with self.assertRaises(ErrorBackend) as ctx:
            api.listar()
        self.assertEqual(ctx.exception.mensaje, 'Error: formato de datos inválido del servidor')

    def test_conexion_rechazada_es_servicio_no_disponible(self):
        api = ProductoAPI(base_url='http://p/api/productos', session=sesion(error=requests.ConnectionError('refused')))
        with self.assertRaises(ServicioNoDisponible) as ctx:
            api.listar()
        self.assertIsNone(ctx.exception.status)
        self.assertIn('productos', ctx.exception.mensaje)

    def test_timeout_es_servicio_no_disponible(self):
        api = OrdenCompraAPI(base_url='http://o/api/ordenes-compra', session=sesion(error=requests.Timeout()))
        with self.assertRaises(ServicioNoDisponible):
            api.pendientes()

    def test_error_http_usa_mensaje_del_backend(self):
        session = sesion(respuesta(400, data={'message': 'El SKU ya existe'}))
        api = ProductoAPI(base_url='http://p/api/productos', session=session)
        with self.assertRaises(ErrorBackend) as ctx:
            api.crear({'sku': 'A-1'})
        self.assertEqual(ctx.exception.status, 400)
        self.assertEqual(ctx.exception.mensaje, 'El SKU ya existe')

    def test_cambiar_estado_producto(self):
        session = sesion(respuesta(data={'id': 4, 'estado': 'INACTIVO'}))
        ProductoAPI(base_url='http://p/api/productos', session=session).cambiar_estado(4, 'INACTIVO')
        args, kwargs = session.request.call_args
        self.assertEqual(args, ('PUT', 'http://p/api/productos/4/estado'))
        self.assertEqual(kwargs['params'], {'estado': 'INACTIVO'})

    def test_cambiar_estado_orden_usa_nuevo_estado(self):
        session = sesion(respuesta(data={'id': 2, 'estado': 'EN_PROCESO'}))
        OrdenCompraAPI(base_url='http://o/api/ordenes-compra', session=session).cambiar_estado(2, 'EN_PROCESO')
        args, kwargs = session.request.call_args
        self.assertEqual(args, ('PUT', 'http://o/api/ordenes-compra/2/estado'))
        self.assertEqual(kwargs['params'], {'nuevoEstado': 'EN_PROCESO'})

    def test_reducir_stock(self):
        session = sesion(respuesta(data={'id': 1, 'cantidad': 5}))
        api = InventarioAPI(base_url='http://i/api/inventario', bodegas_url='http://i/api/bodegas', session=session)
        api.reducir_stock(10, 3, 7)
        args, kwargs = session.request.call_args
        self.assertEqual(args, ('PATCH', 'http://i/api/inventario/producto/10/bodega/3/reducir-stock'))
        self.assertEqual(kwargs['params'], {'cantidad': 7})

    def test_bodegas_del_servicio_de_inventario(self):
        session = sesion(respuesta(data=[{'id': 1, 'nombre': 'Central'}]))
        api = InventarioAPI(base_url='http://i/api/inventario', bodegas_url='http://i/api/bodegas/', session=session)
        self.assertEqual(api.bodegas(), [{'id': 1, 'nombre': 'Central'}])
        self.assertEqual(session.request.call_args[0], ('GET', 'http://i/api/bodegas'))

    def llamada(self, session):
        args, kwargs = session.request.call_args
        return args[0], args[1], kwargs['params']

    def test_busquedas_de_productos(self):
        session = sesion(
            respuesta(data={'id': 1, 'sku': 'LAP-1'}),
            respuesta(data=[{'id': 1}]),
            respuesta(data=[{'id': 2}]),
            respuesta(data=[{'id': 3}]),
        )
        api = ProductoAPI(base_url='http://p/api/productos', session=session)

        self.assertEqual(api.buscar_por_sku('LAP-1'), [{'id': 1, 'sku': 'LAP-1'}])
        self.assertEqual(self.llamada(session), ('GET', 'http://p/api/productos/sku/LAP-1', None))
        api.buscar_por_categoria('ELECTRÓNICA')
        self.assertEqual(self.llamada(session), ('GET', 'http://p/api/productos/categoria/ELECTRÓNICA', None))
        api.buscar_por_estado('ACTIVO')
        self.assertEqual(self.llamada(session), ('GET', 'http://p/api/productos/estado/ACTIVO', None))
        api.buscar_por_nombre('lap')
        self.assertEqual(self.llamada(session), ('GET', 'http://p/api/productos/buscar', {'nombre': 'lap'}))

    def test_sku_inexistente_devuelve_lista_vacia(self):
        api = ProductoAPI(base_url='http://p/api/productos', session=sesion(respuesta(404)))
        self.assertEqual(api.buscar_por_sku('NADA'), [])

    def test_busquedas_de_proveedores(self):
        session = sesion(respuesta(data={'id': 7, 'nitRuc': '1790012345001'}), respuesta(data=[]))
        api = ProveedorAPI(base_url='http://p/api/proveedores', session=session)

        self.assertEqual(api.buscar_por_nit_ruc('1790012345001'), [{'id': 7, 'nitRuc': '1790012345001'}])
        self.assertEqual(self.llamada(session), ('GET', 'http://p/api/proveedores/nit/1790012345001', None))
        self.assertEqual(api.buscar_por_nombre('acme'), [])
        self.assertEqual(self.llamada(session), ('GET', 'http://p/api/proveedores/buscar', {'nombre': 'acme'}))

    def test_bodega_por_nombre(self):
        session = sesion(respuesta(data={'id': 2, 'nombre': 'Central'}))
        api = BodegaAPI(base_url='http://b/api/bodegas', session=session)
        self.assertEqual(api.buscar_por_nombre('Central'), [{'id': 2, 'nombre': 'Central'}])
        self.assertEqual(self.llamada(session), ('GET', 'http://b/api/bodegas/nombre/Central', None))

    def test_busquedas_de_inventario(self):
        session = sesion(
            respuesta(data=[{'id': 1}]),
            respuesta(data={'id': 1, 'cantidad': 4}),
            respuesta(data={'id': 1, 'cantidad': 9}),
        )
        api = InventarioAPI(base_url='http://i/api/inventario', bodegas_url='http://i/api/bodegas', session=session)

        api.por_producto(10)
        self.assertEqual(self.llamada(session), ('GET', 'http://i/api/inventario/producto/10', None))
        self.assertEqual(api.por_producto_y_bodega(10, 3), {'id': 1, 'cantidad': 4})
        self.assertEqual(self.llamada(session), ('GET', 'http://i/api/inventario/producto/10/bodega/3', None))
        api.agregar_stock(10, 3, 5)
        self.assertEqual(
            self.llamada(session), ('PATCH', 'http://i/api/inventario/producto/10/bodega/3/agregar-stock', {'cantidad': 5})
        )

    def test_busquedas_de_ordenes(self):
        session = sesion(
            respuesta(data=[{'id': 1}]),
            respuesta(data=[]),
            respuesta(data=[{'id': 2}]),
            respuesta(data=True),
            respuesta(data=False),
        )
        api = OrdenCompraAPI(base_url='http://o/api/ordenes-compra', session=session)

        api.por_proveedor(7)
        self.assertEqual(self.llamada(session), ('GET', 'http://o/api/ordenes-compra/proveedor/7', None))
        api.por_rango_fechas('2024-03-01T00:00:00', '2024-03-31T23:59:59')
        self.assertEqual(self.llamada(session), (
            'GET', 'http://o/api/ordenes-compra/rango-fechas',
            {'fechaInicio': '2024-03-01T00:00:00', 'fechaFin': '2024-03-31T23:59:59'},
        ))
        api.por_numero_factura('FAC-001')
        self.assertEqual(
            self.llamada(session), ('GET', 'http://o/api/ordenes-compra/factura', {'numeroFactura': 'FAC-001'})
        )
        self.assertTrue(api.existe_numero_factura('FAC-001'))
        self.assertEqual(
            self.llamada(session),
            ('GET', 'http://o/api/ordenes-compra/validar/numero-factura', {'numeroFactura': 'FAC-001'}),
        )
        self.assertFalse(api.existe_numero_factura('FAC-002'))


class ErrorBackendTestCase(SimpleTestCase):

    def test_mensaje_desde_errores_por_campo(self):
        error = ErrorBackend.desde_respuesta(
            respuesta(400, data={'errors': {'nombre': 'es obligatorio', 'precio': 'debe ser positivo'}})
        )
        self.assertEqual(error.mensaje, 'es obligatorio, debe ser positivo')
        self.assertEqual(error.errores['precio'], 'debe ser positivo')

    def test_mensaje_desde_lista_de_errores(self):
        error = ErrorBackend.desde_respuesta(respuesta(400, data={'errors': ['uno', 'dos']}))
        self.assertEqual(error.mensaje, 'uno, dos')

    def test_mensaje_desde_texto_plano(self):
        error = ErrorBackend.desde_respuesta(respuesta(500, texto='Stock insuficiente'))
        self.assertEqual(error.mensaje, 'Stock insuficiente')
        self.assertEqual(error.status, 500)

    def test_mensaje_por_defecto(self):
        error = ErrorBackend.desde_respuesta(respuesta(502, texto=''), 'Error en el servicio')
        self.assertEqual(error.mensaje, 'Error en el servicio')
        self.assertEqual(ErrorBackend().mensaje, ErrorBackend.MENSAJE_GENERICO)


class ErrorBackendMiddlewareTestCase(SimpleTestCase):

    def setUp(self):
        self.middleware = ErrorBackendMiddleware(lambda request: None)
        self.request = RequestFactory().get('/inventario/productos/')

    def test_servicio_caido_muestra_503(self):
        response = self.middleware.process_exception(
            self.request, ServicioNoDisponible('proveedores', 'Connection refused')
        )
        self.assertEqual(response.status_code, 503)
        self.assertIn('El servicio de proveedores no está disponible', response.content.decode())

    def test_otros_errores_siguen_su_curso(self):
        self.assertIsNone(self.middleware.process_exception(self.request, ErrorBackend('otro')))
        self.assertIsNone(self.middleware.process_exception(self.request, ValueError()))
