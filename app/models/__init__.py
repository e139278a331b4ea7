from app.models.applied_coupon import AppliedCouponRecord
from app.models.checkout_snapshot import CheckoutSnapshot
from app.models.card_payment import CardPayment, CardPaymentStatus
from app.models.notifications import Notification, NotificationLevel, RecipientRole

# add ALL models here
