# storefront/domain/errors.py
"""
Bledy domenowe serwisu. Kazdy niesie kod HTTP, routery tlumacza je
na HTTPException, serwisy nic nie wiedza o HTTP.
"""


class ShopError(Exception):
    status_code = 400

    def __init__(self, message: str | None = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class Unauthenticated(ShopError):
    status_code = 401


class Forbidden(ShopError, PermissionError):
    status_code = 403


class NotFound(ShopError, LookupError):
    status_code = 404


class InvalidQuantity(ShopError, ValueError):
    status_code = 400


class InvalidAddress(ShopError, ValueError):
    status_code = 400


class EmptyCart(ShopError, ValueError):
    status_code = 400


class InvalidStateTransition(ShopError):
    status_code = 409


class StorageConflict(ShopError, RuntimeError):
    status_code = 409


class Conflict(ShopError):
    status_code = 409


class CatalogUnavailable(ShopError, RuntimeError):
    status_code = 503


class InvalidStatusValue(ShopError, ValueError):
    status_code = 400


class LockUnavailable(ShopError, RuntimeError):
    status_code = 503
