# ==============================================================================
# ERRORES DE DOMINIO
# ==============================================================================
# Los servicios lanzan estas excepciones; las rutas las convierten en
# respuestas JSON {"error": ...} con el código HTTP correspondiente.
# ==============================================================================

from typing import Any, Dict, List, Union

from pydantic import ValidationError


class StationError(Exception):
    """Error base de la aplicación con código HTTP asociado."""

    status_code = 500

    def __init__(self, message: Union[str, Dict[str, Any]], status_code: int = None):
        super().__init__(message if isinstance(message, str) else 'Error de validación')
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {'error': self.message}


class NotFoundError(StationError):
    """El documento solicitado no existe."""
    status_code = 404


class BusinessRuleError(StationError):
    """Operación rechazada por una regla de negocio (stock, montos, etc.)."""
    status_code = 400


class ValidationFailed(StationError):
    """
    Datos de entrada inválidos.

    Attributes:
        message: Diccionario {campo: [mensajes]} o mensaje simple
    """
    status_code = 400


def field_errors(exc: ValidationError) -> Dict[str, List[str]]:
    """
    Aplana los errores de pydantic a {campo: [mensajes]}.

    Los errores sin campo (validadores de modelo) se agrupan bajo "_form".
    """
    errors: Dict[str, List[str]] = {}
    for err in exc.errors():
        loc = err.get('loc') or ()
        key = str(loc[0]) if loc else '_form'
        msg = err.get('msg', 'Valor inválido')
        # pydantic antepone "Value error, " a los ValueError propios
        if msg.startswith('Value error, '):
            msg = msg[len('Value error, '):]
        errors.setdefault(key, []).append(msg)
    return errors
