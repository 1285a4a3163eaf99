# consola/exceptions.py


class ErrorBackend(Exception):
    """
    Error devuelto (o provocado) por un microservicio REST.

    Atributos:
        mensaje: texto listo para mostrar al usuario
        status: código HTTP de la respuesta, None si no hubo respuesta
        errores: errores por campo enviados por el backend, si los hay
    """

    MENSAJE_GENERICO = 'Error al comunicarse con el servidor'

    def __init__(self, mensaje=None, status=None, errores=None):
        self.mensaje = mensaje or self.MENSAJE_GENERICO
        self.status = status
        self.errores = errores or {}
        super().__init__(self.mensaje)

    @classmethod
    def desde_respuesta(cls, response, mensaje_por_defecto=None):
        """
        Construye el error a partir de una respuesta HTTP fallida.

        Orden de búsqueda del mensaje: clave 'message', luego 'errors'
        (diccionario o lista), luego el cuerpo como texto.
        """
        mensaje = None
        errores = {}
        try:
            data = response.json()
        except ValueError:
            data = response.text.strip() or None

        if isinstance(data, dict):
            if isinstance(data.get('errors'), dict):
                errores = data['errors']
            if data.get('message'):
                mensaje = str(data['message'])
            elif isinstance(data.get('errors'), dict) and data['errors']:
                mensaje = ', '.join(str(v) for v in data['errors'].values())
            elif isinstance(data.get('errors'), list) and data['errors']:
                mensaje = ', '.join(str(v) for v in data['errors'])
            elif data.get('error'):
                mensaje = str(data['error'])
        elif isinstance(data, str):
            mensaje = data

        return cls(mensaje or mensaje_por_defecto, status=response.status_code, errores=errores)


class ServicioNoDisponible(ErrorBackend):
    """El microservicio no respondió (conexión rechazada o tiempo agotado)."""

    def __init__(self, servicio, detalle=None):
        self.servicio = servicio
        self.detalle = detalle
        super().__init__(f'El servicio de {servicio} no está disponible. Intente nuevamente más tarde.')
