from fastapi import Depends, HTTPException
from app.utils.token import Shopper, get_current_shopper

def require_admin(current_shopper: Shopper = Depends(get_current_shopper)):
    if not current_shopper.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_shopper
