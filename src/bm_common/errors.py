"""Unified error codes and custom exceptions.

Every error belongs to one taxonomy category (the intermediate base class),
which fixes its HTTP status. Concrete errors carry a stable numeric code.

Error code ranges:
  1xxx: Auth/User
  2xxx: Listing
  3xxx: Bid / Arbitration
  4xxx: Verification
  5xxx: Wishlist
  6xxx: Payment
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- Taxonomy categories ---

class NotFoundError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 404)


class ForbiddenError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 403)


class InvalidStateError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 422)


class InvalidInputError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 422)


class ConflictError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 409)


class UpstreamFailureError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 502)


# --- 1xxx: Auth/User ---

class EmailExistsError(ConflictError):
    def __init__(self) -> None:
        super().__init__(1001, "Email already registered")


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Invalid email or password", 401)


class AccountDisabledError(ForbiddenError):
    def __init__(self) -> None:
        super().__init__(1003, "Account is disabled")


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Refresh token is invalid or expired", 401)


class RoleNotAllowedError(ForbiddenError):
    def __init__(self, role: str) -> None:
        super().__init__(1005, f"Operation not permitted for role {role}")


class RegistrationRoleError(InvalidInputError):
    def __init__(self, role: str) -> None:
        super().__init__(1006, f"Cannot self-register with role {role}")


class NoPendingRegistrationError(NotFoundError):
    def __init__(self, email: str) -> None:
        super().__init__(1007, f"No pending registration for {email}")


class InvalidOtpError(InvalidInputError):
    def __init__(self) -> None:
        super().__init__(1008, "Invalid or expired OTP")


class EmailDeliveryError(UpstreamFailureError):
    def __init__(self, detail: str = "Email delivery failed") -> None:
        super().__init__(1009, detail)


# --- 2xxx: Listing ---

class ListingNotFoundError(NotFoundError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(2001, f"Listing not found: {listing_id}")


class NotListingOwnerError(ForbiddenError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(2002, f"Not the owner of listing {listing_id}")


class InvalidAuctionWindowError(InvalidInputError):
    def __init__(self, detail: str) -> None:
        super().__init__(2003, f"Invalid auction window: {detail}")


class AuctionLockedError(InvalidStateError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(
            2004, f"Auction window of listing {listing_id} can no longer be changed"
        )


class ListingInUseError(InvalidStateError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(
            2005, f"Listing {listing_id} has bids or a winner and cannot be deleted"
        )


# --- 3xxx: Bid / Arbitration ---

class BidNotFoundError(NotFoundError):
    def __init__(self, bid_id: str) -> None:
        super().__init__(3001, f"Bid not found: {bid_id}")


class InvalidBidAmountError(InvalidInputError):
    def __init__(self, amount: int) -> None:
        super().__init__(3002, f"Bid amount must be positive, got {amount}")


class ListingNotVerifiedError(InvalidStateError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(3003, f"Listing {listing_id} is not verified")


class BidTooLowError(ConflictError):
    def __init__(self, amount: int, minimum: int) -> None:
        super().__init__(3004, f"Bid {amount} must exceed {minimum}")


class NotBidOwnerError(ForbiddenError):
    def __init__(self, bid_id: str) -> None:
        super().__init__(3005, f"Not the owner of bid {bid_id}")


class BidNotMutableError(InvalidStateError):
    def __init__(self, bid_id: str, status: str) -> None:
        super().__init__(3006, f"Bid {bid_id} in status {status} cannot be changed")


class AlreadyResolvedError(InvalidStateError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(3007, f"Listing {listing_id} already has a winning bid")


class InvalidBidTransitionError(InvalidStateError):
    def __init__(self, current: str, target: str) -> None:
        super().__init__(3008, f"Illegal bid transition {current} -> {target}")


class AuctionNotStartedError(InvalidStateError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(3009, f"Auction for listing {listing_id} has not started")


class AuctionEndedError(InvalidStateError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(3010, f"Auction for listing {listing_id} has ended")


class AuctionStillRunningError(InvalidStateError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(3011, f"Auction for listing {listing_id} is still running")


# --- 4xxx: Verification ---

class AlreadyVerifiedError(InvalidStateError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(4001, f"Listing {listing_id} is already verified")


class ListingSettledError(InvalidStateError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(4002, f"Listing {listing_id} has a settled payment")


# --- 5xxx: Wishlist ---

class AlreadyInWishlistError(ConflictError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(5001, f"Listing {listing_id} is already in the wishlist")


# --- 6xxx: Payment ---

class PaymentNotFoundError(NotFoundError):
    def __init__(self, reference: str) -> None:
        super().__init__(6001, f"Payment not found: {reference}")


class BidNotPayableError(InvalidStateError):
    def __init__(self, bid_id: str, status: str) -> None:
        super().__init__(6002, f"Bid {bid_id} in status {status} cannot be paid")


class PaymentGatewayError(UpstreamFailureError):
    def __init__(self, detail: str = "Payment gateway request failed") -> None:
        super().__init__(6003, detail)


class PaymentSignatureError(UpstreamFailureError):
    def __init__(self) -> None:
        super().__init__(6004, "Payment signature verification failed")


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9001, detail, 500)
