from fastapi import HTTPException

from app.services.shop_api import ShopApiError


def shop_api_http_error(exc: ShopApiError, popup: dict | None = None) -> HTTPException:
    """
    Map a shop API failure onto the response the storefront returns.

    Client errors from the API (bad coupon, missing address, expired session)
    are passed through; transport failures and server errors become 502.
    """
    status_code = exc.status_code
    if status_code is None or status_code >= 500:
        status_code = 502

    return HTTPException(
        status_code=status_code,
        detail={"message": exc.message, **(popup or {})},
    )
