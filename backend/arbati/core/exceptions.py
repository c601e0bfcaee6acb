"""
Errors for the back-office API.

Services raise the domain exceptions below and know nothing about HTTP.
Routes turn them into HTTPException through BusinessError, which logs the
detail and keeps what the client sees short. Rule violations (stock,
debt, cancelled invoices) are the user's to fix, so their message is
returned as-is; server faults never are.
"""
import logging

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


class InvoiceError(ValueError):
    """Invoice could not be created or changed (wholesale without customer, no stock, already cancelled)."""


class PaymentError(ValueError):
    """Payment rejected (zero amount, more than the customer owes)."""


class CustomerInUse(ValueError):
    """Customer still has invoices and cannot be deleted."""


class RecordNotFound(LookupError):
    """Referenced customer, product, motorcycle or invoice does not exist."""

    def __init__(self, resource: str, record_id=None):
        self.resource = resource
        self.record_id = record_id
        super().__init__(f"{resource} {record_id} not found" if record_id is not None else f"{resource} not found")


class BusinessError:
    """HTTPException factories. Each one logs at a level matching who is at fault."""

    @staticmethod
    def not_found(resource: str = "Resource", reason: str = "") -> HTTPException:
        """
        Example:
            if not customer:
                raise BusinessError.not_found("Customer")
        """
        if reason:
            logger.info(f"Not found: {resource} ({reason})")
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{resource} not found")

    @staticmethod
    def unauthorized(reason: str = "") -> HTTPException:
        """One response for wrong password, unknown email and inactive account."""
        logger.warning(f"Unauthorized: {reason}")
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication failed",
            headers={"WWW-Authenticate": "Bearer"},
        )

    @staticmethod
    def forbidden(reason: str = "") -> HTTPException:
        logger.warning(f"Forbidden: {reason}")
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

    @staticmethod
    def bad_request(detail: str) -> HTTPException:
        logger.info(f"Rejected: {detail}")
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

    @staticmethod
    def conflict(detail: str) -> HTTPException:
        """Duplicate customer code, SKU or employee email."""
        logger.info(f"Conflict: {detail}")
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)

    @staticmethod
    def server_error(original_error: Exception = None) -> HTTPException:
        """500 with a fixed message. The real error and traceback go to the log only."""
        if original_error is not None:
            logger.error(
                f"Internal server error: {type(original_error).__name__}: {original_error}",
                exc_info=original_error,
            )
        else:
            logger.error("Internal server error", exc_info=True)
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An internal error occurred. Please try again later.",
        )

    @staticmethod
    def from_domain(error: Exception) -> HTTPException:
        """
        Map a service exception to its HTTP error.

        Usage:
            try:
                invoice = create_invoice(db, data, current_user)
            except (InvoiceError, RecordNotFound) as e:
                db.rollback()
                raise BusinessError.from_domain(e)
        """
        if isinstance(error, RecordNotFound):
            return BusinessError.not_found(error.resource, str(error))
        if isinstance(error, (InvoiceError, PaymentError, CustomerInUse)):
            return BusinessError.bad_request(str(error))
        return BusinessError.server_error(error)
