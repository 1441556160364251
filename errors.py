"""
Marketplace error taxonomy.

Engine operations raise these; main.py turns them into HTTP responses.
No error here is fatal: an operation that raises leaves state unchanged.
"""


class MarketplaceError(Exception):
    code = "marketplace_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MarketplaceError):
    code = "validation_error"


class MissingMedia(ValidationError):
    code = "missing_media"

    def __init__(self, message: str = "At least one image is required to publish a listing."):
        super().__init__(message)


class InvalidTransition(ValidationError):
    code = "invalid_transition"


class NotFound(MarketplaceError):
    code = "not_found"
    status_code = 404

    def __init__(self, kind: str, ident: str):
        super().__init__(f"{kind} not found")
        self.kind = kind
        self.ident = ident


class EmptyCart(MarketplaceError):
    code = "empty_cart"

    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class ExternalServiceError(MarketplaceError):
    code = "external_service_error"
    status_code = 502
