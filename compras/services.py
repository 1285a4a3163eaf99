import logging
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.utils import timezone

from consola.exceptions import ErrorBackend
from .estados import COMPLETADA, validar_transicion

logger = logging.getLogger(__name__)

CENTAVOS = Decimal('0.01')


def generar_numero_factura(ahora=None):
    """
    Número de factura sugerido para una orden nueva: FAC-YYYYMMDD-HHMMSSmmm.

    Una fecha sin zona horaria se toma como hora local.
    """
    if ahora is None:
        ahora = timezone.localtime()
    elif timezone.is_naive(ahora):
        ahora = timezone.make_aware(ahora)
    else:
        ahora = timezone.localtime(ahora)
    return 'FAC-{:%Y%m%d-%H%M%S}{:03d}'.format(ahora, ahora.microsecond // 1000)


def _redondear(valor):
    return Decimal(valor).quantize(CENTAVOS, rounding=ROUND_HALF_UP)


def calcular_totales(detalles, tasa_iva=None):
    """
    Calcula subtotal, IVA y total de una orden.

    Cada detalle es un diccionario con 'cantidad' y 'precio_unitario'.
    Devuelve (detalles con su 'subtotal', subtotal, iva, total).
    """
    tasa = Decimal(str(settings.IVA_TASA if tasa_iva is None else tasa_iva))
    subtotal = Decimal('0')
    calculados = []
    for detalle in detalles:
        linea = _redondear(Decimal(detalle['cantidad']) * Decimal(str(detalle['precio_unitario'])))
        calculados.append(dict(detalle, subtotal=linea))
        subtotal += linea
    subtotal = _redondear(subtotal)
    iva = _redondear(subtotal * tasa)
    return calculados, subtotal, iva, subtotal + iva


class ResultadoReduccion:
    """Resultado del descuento de stock de una orden completada."""

    def __init__(self, bodega=None):
        self.bodega = bodega
        self.exitos = 0
        self.errores = []

    @property
    def hubo_errores(self):
        return bool(self.errores)

    def __repr__(self):
        return f'<ResultadoReduccion exitos={self.exitos} errores={len(self.errores)}>'


def reducir_stock_orden(orden, inventario_api):
    """
    Descuenta del inventario las cantidades de cada detalle de la orden.

    Se usa la primera bodega que devuelve el servicio de inventario. Los
    errores de cada línea se acumulan sin interrumpir el resto.
    """
    detalles = orden.get('detalles') or []
    if not detalles:
        logger.info("La orden %s no tiene detalles, no se reduce stock", orden.get('id'))
        return ResultadoReduccion()

    bodegas = inventario_api.bodegas()
    if not bodegas:
        raise ErrorBackend('No hay bodegas disponibles para reducir stock')

    bodega = bodegas[0]
    if bodega.get('id') is None:
        raise ErrorBackend('La bodega por defecto no tiene un ID válido')

    resultado = ResultadoReduccion(bodega=bodega)
    for detalle in detalles:
        producto_id = detalle.get('productoId')
        try:
            inventario_api.reducir_stock(producto_id, bodega['id'], detalle.get('cantidad'))
            resultado.exitos += 1
        except ErrorBackend as e:
            logger.warning("No se pudo reducir stock del producto %s: %s", producto_id, e.mensaje)
            resultado.errores.append(f'Producto {producto_id}: {e.mensaje}')
    return resultado


def cambiar_estado_orden(orden, nuevo_estado, ordenes_api, inventario_api):
    """
    Valida y aplica el cambio de estado de una orden.

    Lanza TransicionNoPermitida sin tocar el backend si el cambio no es
    válido. Al pasar a COMPLETADA devuelve el ResultadoReduccion del stock;
    en otro caso devuelve None.
    """
    validar_transicion(orden.get('estado'), nuevo_estado)
    ordenes_api.cambiar_estado(orden['id'], nuevo_estado)
    logger.info("Orden %s cambió de %s a %s", orden['id'], orden.get('estado'), nuevo_estado)

    if nuevo_estado != COMPLETADA:
        return None

    try:
        return reducir_stock_orden(orden, inventario_api)
    except ErrorBackend as e:
        logger.error("Error general al reducir stock de la orden %s: %s", orden['id'], e.mensaje)
        resultado = ResultadoReduccion()
        resultado.errores.append(e.mensaje)
        return resultado
