# compras/estados.py
"""
Estados de una orden de compra y sus transiciones permitidas.

    PENDIENTE  -> EN_PROCESO | CANCELADA
    EN_PROCESO -> COMPLETADA | CANCELADA
    COMPLETADA, CANCELADA: estados finales
"""

PENDIENTE = 'PENDIENTE'
EN_PROCESO = 'EN_PROCESO'
COMPLETADA = 'COMPLETADA'
CANCELADA = 'CANCELADA'

ESTADOS = [
    (PENDIENTE, 'Pendiente'),
    (EN_PROCESO, 'En proceso'),
    (COMPLETADA, 'Completada'),
    (CANCELADA, 'Cancelada'),
]

TRANSICIONES = {
    PENDIENTE: frozenset({EN_PROCESO, CANCELADA}),
    EN_PROCESO: frozenset({COMPLETADA, CANCELADA}),
    COMPLETADA: frozenset(),
    CANCELADA: frozenset(),
}

ESTADOS_FINALES = frozenset(e for e, destinos in TRANSICIONES.items() if not destinos)


class TransicionNoPermitida(Exception):
    """Cambio de estado que la tabla de transiciones no admite."""

    def __init__(self, origen, destino):
        self.origen = origen
        self.destino = destino
        mensaje = f'No se permite cambiar el estado de {origen} a {destino}'
        if origen in ESTADOS_FINALES:
            mensaje += f': {origen} es un estado final'
        elif origen == PENDIENTE and destino == COMPLETADA:
            mensaje += f': primero debe pasar a {EN_PROCESO}'
        elif origen in TRANSICIONES:
            permitidos = ' o '.join(transiciones_permitidas(origen))
            mensaje += f': desde {origen} solo se puede cambiar a {permitidos}'
        super().__init__(mensaje)
        self.mensaje = mensaje


def transiciones_permitidas(estado):
    """Estados destino alcanzables desde `estado`, en el orden de ESTADOS."""
    destinos = TRANSICIONES.get(estado, frozenset())
    return [e for e, _ in ESTADOS if e in destinos]


def puede_cambiar(origen, destino):
    return destino in TRANSICIONES.get(origen, frozenset())


def validar_transicion(origen, destino):
    if not puede_cambiar(origen, destino):
        raise TransicionNoPermitida(origen, destino)
