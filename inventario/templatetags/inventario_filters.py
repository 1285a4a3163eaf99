from decimal import Decimal, InvalidOperation

from django import template

register = template.Library()

COLORES_ESTADO = {
    'ACTIVO': 'success',
    'INACTIVO': 'secondary',
    'PENDIENTE': 'warning',
    'EN_PROCESO': 'info',
    'COMPLETADA': 'success',
    'CANCELADA': 'danger',
}

COLORES_STOCK = {
    'Crítico': 'danger',
    'Bajo': 'warning',
    'Normal': 'success',
}


@register.filter
def badge_estado(estado):
    """Clase de color Bootstrap para un estado de entidad u orden"""
    return COLORES_ESTADO.get(estado, 'secondary')


@register.filter
def badge_stock(estado_stock):
    return COLORES_STOCK.get(estado_stock, 'secondary')


@register.filter
def multiply(value, arg):
    """Multiplica un valor por un argumento"""
    try:
        return Decimal(str(value)) * Decimal(str(arg))
    except (InvalidOperation, ValueError, TypeError):
        return 0


@register.filter
def moneda(value):
    """Formatea un importe como $1234.50"""
    try:
        return f"${Decimal(str(value)).quantize(Decimal('0.01'))}"
    except (InvalidOperation, ValueError, TypeError):
        return '$0.00'
