"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Post
  3xxx: Listing
  4xxx: Bid
  9xxx: System

Every error also carries a coarse `kind` so callers can branch without
memorising codes: not_found, permission_denied, invalid_state,
invalid_input, auth, rate_limited, internal.
"""

from decimal import Decimal


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        kind: str = "internal",
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.kind = kind
        super().__init__(message)


# --- 1xxx: Auth/User ---

class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Email already exists", 409, "invalid_input")


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Invalid email or password", 401, "auth")


class AccountBannedError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Account is banned", 403, "permission_denied")


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Refresh token is invalid or expired", 401, "auth")


# --- 2xxx: Post ---

class PostNotFoundError(AppError):
    def __init__(self, post_id: str) -> None:
        super().__init__(2001, f"Post not found: {post_id}", 404, "not_found")


class NotPostOwnerError(AppError):
    # 404 rather than 403: a non-author learns nothing about the post
    def __init__(self, post_id: str) -> None:
        super().__init__(
            2002,
            f"Post not found or you don't have permission: {post_id}",
            404,
            "permission_denied",
        )


class InvalidPostError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(2003, f"Invalid post: {detail}", 400, "invalid_input")


# --- 3xxx: Listing ---

class AlreadyListedError(AppError):
    def __init__(self, post_id: str) -> None:
        super().__init__(3001, f"Post is already in market: {post_id}", 400, "invalid_state")


class NotListedError(AppError):
    def __init__(self, post_id: str) -> None:
        super().__init__(3002, f"Post is not in market: {post_id}", 400, "invalid_state")


class ListingHasBidsError(AppError):
    def __init__(self, post_id: str) -> None:
        super().__init__(
            3003, f"Post has existing bids and cannot be withdrawn: {post_id}", 400, "invalid_state"
        )


class InvalidListingError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3004, f"Invalid listing: {detail}", 400, "invalid_input")


# --- 4xxx: Bid ---

class SelfBidError(AppError):
    def __init__(self) -> None:
        super().__init__(4001, "Cannot bid on your own post", 403, "permission_denied")


class AuctionEndedError(AppError):
    def __init__(self, post_id: str) -> None:
        super().__init__(4002, f"Auction has ended: {post_id}", 400, "invalid_state")


class BidTooLowError(AppError):
    def __init__(self, amount: Decimal, current_highest: Decimal) -> None:
        super().__init__(
            4003,
            f"Bid {amount} must be higher than current highest bid of {current_highest}",
            400,
            "invalid_input",
        )
        self.current_highest = current_highest


class InvalidBidAmountError(AppError):
    def __init__(self, amount: Decimal) -> None:
        super().__init__(
            4004,
            f"Bid amount must be a positive amount in whole cents, got {amount}",
            400,
            "invalid_input",
        )


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429, "rate_limited")


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500, "internal")
