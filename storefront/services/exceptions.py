# storefront/services/exceptions.py

class ServiceError(Exception):
    """Clase base para errores de la capa de servicio."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class InvalidQuantityError(ServiceError):
    """Lanzada cuando una cantidad es inválida (e.g., < 1)."""
    pass


class InsufficientStockError(ServiceError):
    """Lanzada cuando no hay suficiente stock para una operación."""
    pass


class DomainValidationError(ServiceError):
    """Entrada de dominio inválida."""
    pass


class ResourceNotFoundError(ServiceError):
    """Recurso no encontrado."""
    pass


class ConflictError(ServiceError):
    """Conflicto de estado en la operación."""
    pass


class CartItemNotFoundError(ResourceNotFoundError):
    """El producto no está en el carrito."""
    pass


class EmptyCartError(ConflictError):
    """No hay carrito activo o no tiene ítems."""
    pass


class MissingAddressError(ConflictError):
    """El carrito no tiene dirección de envío."""
    pass


class SlugGenerationError(ConflictError):
    """No se encontró un slug libre dentro del número máximo de intentos."""
    pass
