# consola/api.py
"""
Clientes de los microservicios REST del sistema de inventario.

Cada entidad vive en un servicio independiente; la consola solo consulta y
envía JSON. Las claves del JSON se dejan tal como las usa el backend
(camelCase); la conversión a los campos de los formularios se hace en cada
formulario.
"""
import logging

import requests
from django.conf import settings

from .exceptions import ErrorBackend, ServicioNoDisponible

logger = logging.getLogger(__name__)


class ClienteAPI:
    """Base común: sesión HTTP, tiempo de espera y traducción de errores."""

    servicio = 'backend'
    setting_url = None

    def __init__(self, base_url=None, timeout=None, session=None):
        if base_url is None:
            base_url = getattr(settings, self.setting_url)
        self.base_url = base_url.rstrip('/')
        self.timeout = settings.API_TIMEOUT if timeout is None else timeout
        self.session = session or requests.Session()
        self.session.headers.update({'Accept': 'application/json'})

    def _url(self, *partes, base=None):
        base = base or self.base_url
        if not partes:
            return base
        return '/'.join([base] + [str(p).strip('/') for p in partes])

    def _request(self, metodo, *partes, params=None, json=None, base=None):
        url = self._url(*partes, base=base)
        logger.debug("%s %s params=%s", metodo, url, params)
        try:
            response = self.session.request(metodo, url, params=params, json=json, timeout=self.timeout)
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.error("Servicio de %s sin respuesta (%s %s): %s", self.servicio, metodo, url, e)
            raise ServicioNoDisponible(self.servicio, str(e)) from e
        except requests.RequestException as e:
            logger.error("Error de red con el servicio de %s: %s", self.servicio, e)
            raise ErrorBackend(f'Error de red con el servicio de {self.servicio}') from e

        if not response.ok:
            error = ErrorBackend.desde_respuesta(
                response, f'Error en el servicio de {self.servicio} ({response.status_code})'
            )
            logger.warning("%s %s -> %s: %s", metodo, url, response.status_code, error.mensaje)
            raise error

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ErrorBackend(
                f'Respuesta inválida del servicio de {self.servicio}', status=response.status_code
            ) from e

    def _lista(self, *partes, params=None, base=None):
        data = self._request('GET', *partes, params=params, base=base)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.error("El servicio de %s no devolvió una lista: %r", self.servicio, data)
            raise ErrorBackend('Error: formato de datos inválido del servidor')
        return data

    def _unico_como_lista(self, *partes):
        """Búsquedas que el backend resuelve con un solo registro o 404."""
        try:
            data = self._request('GET', *partes)
        except ErrorBackend as e:
            if e.status == 404:
                return []
            raise
        if data is None:
            return []
        return data if isinstance(data, list) else [data]

    # --- CRUD común ---

    def listar(self):
        return self._lista()

    def obtener(self, pk):
        return self._request('GET', pk)

    def crear(self, data):
        return self._request('POST', json=data)

    def actualizar(self, pk, data):
        return self._request('PUT', pk, json=data)

    def eliminar(self, pk):
        self._request('DELETE', pk)


class CambioEstadoMixin:
    """Servicios que exponen PUT /{id}/estado?estado=..."""

    def cambiar_estado(self, pk, estado):
        return self._request('PUT', pk, 'estado', params={'estado': estado})

    def buscar_por_estado(self, estado):
        return self._lista('estado', estado)

    def buscar_por_nombre(self, nombre):
        return self._lista('buscar', params={'nombre': nombre})


class ProductoAPI(CambioEstadoMixin, ClienteAPI):
    servicio = 'productos'
    setting_url = 'PRODUCTOS_API_URL'

    def buscar_por_sku(self, sku):
        return self._unico_como_lista('sku', sku)

    def buscar_por_categoria(self, categoria):
        return self._lista('categoria', categoria)


class ProveedorAPI(CambioEstadoMixin, ClienteAPI):
    servicio = 'proveedores'
    setting_url = 'PROVEEDORES_API_URL'

    def buscar_por_nit_ruc(self, nit_ruc):
        return self._unico_como_lista('nit', nit_ruc)


class BodegaAPI(CambioEstadoMixin, ClienteAPI):
    servicio = 'bodegas'
    setting_url = 'BODEGAS_API_URL'

    def buscar_por_nombre(self, nombre):
        return self._unico_como_lista('nombre', nombre)


class InventarioAPI(ClienteAPI):
    """Registros de stock (producto x bodega) y bodegas del servicio de inventario."""

    servicio = 'inventario'
    setting_url = 'INVENTARIO_API_URL'

    def __init__(self, base_url=None, timeout=None, session=None, bodegas_url=None):
        super().__init__(base_url=base_url, timeout=timeout, session=session)
        if bodegas_url is None:
            bodegas_url = settings.INVENTARIO_BODEGAS_API_URL
        self.bodegas_url = bodegas_url.rstrip('/')

    def por_producto(self, producto_id):
        return self._lista('producto', producto_id)

    def por_bodega(self, bodega_id):
        return self._lista('bodega', bodega_id)

    def por_producto_y_bodega(self, producto_id, bodega_id):
        return self._request('GET', 'producto', producto_id, 'bodega', bodega_id)

    def stock_critico(self):
        return self._lista('stock-critico')

    def actualizar_stock(self, producto_id, bodega_id, nueva_cantidad):
        return self._request(
            'PATCH', 'producto', producto_id, 'bodega', bodega_id, 'actualizar-stock',
            params={'nuevaCantidad': nueva_cantidad},
        )

    def agregar_stock(self, producto_id, bodega_id, cantidad):
        return self._request(
            'PATCH', 'producto', producto_id, 'bodega', bodega_id, 'agregar-stock',
            params={'cantidad': cantidad},
        )

    def reducir_stock(self, producto_id, bodega_id, cantidad):
        logger.info("Reduciendo %s unidades del producto %s en bodega %s", cantidad, producto_id, bodega_id)
        return self._request(
            'PATCH', 'producto', producto_id, 'bodega', bodega_id, 'reducir-stock',
            params={'cantidad': cantidad},
        )

    def bodegas(self):
        """Bodegas registradas en el servicio de inventario, en el orden del backend."""
        return self._lista(base=self.bodegas_url)


class OrdenCompraAPI(ClienteAPI):
    servicio = 'órdenes de compra'
    setting_url = 'ORDENES_API_URL'

    def por_estado(self, estado):
        return self._lista('estado', estado)

    def por_proveedor(self, proveedor_id):
        return self._lista('proveedor', proveedor_id)

    def por_rango_fechas(self, fecha_inicio, fecha_fin):
        return self._lista('rango-fechas', params={'fechaInicio': fecha_inicio, 'fechaFin': fecha_fin})

    def por_numero_factura(self, numero_factura):
        return self._lista('factura', params={'numeroFactura': numero_factura})

    def cambiar_estado(self, pk, nuevo_estado):
        logger.info("Orden %s -> %s", pk, nuevo_estado)
        return self._request('PUT', pk, 'estado', params={'nuevoEstado': nuevo_estado})

    def pendientes(self):
        return self._lista('pendientes')

    def resumen(self):
        return self._request('GET', 'resumen')

    def existe_numero_factura(self, numero_factura):
        return bool(self._request('GET', 'validar', 'numero-factura', params={'numeroFactura': numero_factura}))
