import logging

from django.shortcuts import render

from consola.exceptions import ServicioNoDisponible

logger = logging.getLogger(__name__)


class ErrorBackendMiddleware:
    """
    Middleware que atrapa los microservicios caídos.
    Si una vista deja escapar ServicioNoDisponible, se muestra una página
    de aviso con estado 503 en lugar del error 500.
    """
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if not isinstance(exception, ServicioNoDisponible):
            return None
        logger.error("Servicio de %s no disponible en %s: %s", exception.servicio, request.path, exception.detalle)
        return render(
            request,
            'errores/servicio_no_disponible.html',
            {'servicio': exception.servicio, 'mensaje': exception.mensaje},
            status=503,
        )
