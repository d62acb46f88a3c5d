"""
Custom exception classes
Provides consistent error responses across the application
"""

from fastapi import HTTPException, status
from typing import Any, Dict, Optional

class StorefrontException(HTTPException):
    """Base exception class for the storefront application"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code

class BadRequestException(StorefrontException):
    """400 Bad Request"""

    def __init__(self, detail: str, error_code: str = "BAD_REQUEST"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code
        )

class UnauthorizedException(StorefrontException):
    """401 Unauthorized"""

    def __init__(self, detail: str = "Unauthorized", error_code: str = "UNAUTHORIZED"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code=error_code,
            headers={"WWW-Authenticate": "Bearer"}
        )

class ForbiddenException(StorefrontException):
    """403 Forbidden"""

    def __init__(self, detail: str = "Forbidden", error_code: str = "FORBIDDEN"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code=error_code
        )

class NotFoundException(StorefrontException):
    """404 Not Found"""

    def __init__(self, detail: str = "Not found", error_code: str = "NOT_FOUND"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code=error_code
        )

class ConflictException(StorefrontException):
    """409 Conflict"""

    def __init__(self, detail: str, error_code: str = "CONFLICT"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code=error_code
        )

class InternalServerException(StorefrontException):
    """500 Internal Server Error"""

    def __init__(
        self,
        detail: str = "Internal server error",
        error_code: str = "INTERNAL_ERROR"
    ):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code=error_code
        )

# Business logic exceptions
class InvalidArgumentException(BadRequestException):
    """Malformed identifier or input value"""

    def __init__(self, detail: str, error_code: str = "INVALID_ARGUMENT"):
        super().__init__(detail=detail, error_code=error_code)

class InvalidQuantityException(InvalidArgumentException):
    """Quantity outside the accepted range"""

    def __init__(self, detail: str = "Quantity must be at least 1"):
        super().__init__(detail=detail, error_code="INVALID_QUANTITY")

class ProductNotFoundException(NotFoundException):
    """Product missing from the catalog"""

    def __init__(self, detail: str = "Product not found"):
        super().__init__(detail=detail, error_code="PRODUCT_NOT_FOUND")

class OutOfStockException(BadRequestException):
    """Product stock insufficient"""

    def __init__(self, product_name: str, available: int):
        super().__init__(
            detail=f"Insufficient stock for {product_name}. Only {available} available.",
            error_code="OUT_OF_STOCK"
        )
        self.available = available

class LineNotFoundException(NotFoundException):
    """No cart line matches the product and variant selection"""

    def __init__(self, detail: str = "Item not found in cart"):
        super().__init__(detail=detail, error_code="LINE_NOT_FOUND")

class CartNotFoundException(NotFoundException):
    """User has no cart yet"""

    def __init__(self, detail: str = "Cart not found"):
        super().__init__(detail=detail, error_code="CART_NOT_FOUND")

class AddressNotFoundException(NotFoundException):
    """Address missing"""

    def __init__(self, detail: str = "Address not found"):
        super().__init__(detail=detail, error_code="ADDRESS_NOT_FOUND")

class InvariantViolationException(InternalServerException):
    """A repair step could not be completed atomically"""

    def __init__(self, detail: str):
        super().__init__(detail=detail, error_code="INVARIANT_VIOLATION")
