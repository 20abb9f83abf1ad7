"""Pro entitlement gate and App Store receipt handling.

Purchases happen on the device. The server only verifies the receipt with
the App Store and mirrors the latest transaction for the Pro product.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

import requests

from hundred_days.errors import ExternalServiceError, ProFeatureRequiredError, ValidationError
from hundred_days.events import SUBSCRIPTION_UPDATED
from hundred_days.extensions import db
from hundred_days.models.subscription import Subscription
from hundred_days.services.base import Service

logger = logging.getLogger(__name__)

# App Store status telling us the receipt belongs to the sandbox
SANDBOX_RECEIPT_STATUS = 21007


@dataclass(frozen=True)
class ProFeature:
    key: str
    icon: str
    title: str
    description: str
    section: str


UNLOCK_POTENTIAL = "🔓 Unlock Your Potential"
LEVEL_UP = "🤝 Level Up Together"
STAY_MOTIVATED = "🎯 Stay Motivated"

PRO_FEATURES = [
    ProFeature("unlimited_challenges", "infinity", "Unlimited Challenges",
               "Run as many 100-day challenges as you like", UNLOCK_POTENTIAL),
    ProFeature("advanced_analytics", "chart.bar", "Advanced Analytics",
               "Consistency trends and projected completion dates", UNLOCK_POTENTIAL),
    ProFeature("custom_reminders", "bell.badge", "Custom Reminders",
               "Pick your reminder time and remind yourself per challenge", STAY_MOTIVATED),
    ProFeature("milestone_cards", "sparkles", "Milestone Share Cards",
               "Celebrate milestones with shareable cards", LEVEL_UP),
]


def pro_features():
    sections = {}
    for feature in PRO_FEATURES:
        sections.setdefault(feature.section, []).append({
            "key": feature.key,
            "icon": feature.icon,
            "title": feature.title,
            "description": feature.description,
        })
    return [{"section": name, "features": items} for name, items in sections.items()]


def _ms_to_datetime(value):
    if value in (None, ""):
        return None
    return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc).replace(tzinfo=None)


class AppStoreClient:
    """Thin client for the App Store ``verifyReceipt`` endpoint."""

    def __init__(self, config, session=None):
        self.verify_url = config["APP_STORE_VERIFY_URL"]
        self.sandbox_url = config["APP_STORE_SANDBOX_URL"]
        self.shared_secret = config["APP_STORE_SHARED_SECRET"]
        self.timeout = config.get("HTTP_TIMEOUT", 10)
        self.session = session or requests.Session()

    def _post(self, url, receipt_data):
        try:
            response = self.session.post(
                url,
                json={
                    "receipt-data": receipt_data,
                    "password": self.shared_secret,
                    "exclude-old-transactions": True,
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logging.error(f"App Store verification error: {e}")
            raise ExternalServiceError("Couldn't reach the App Store. Please try again.") from e

    def verify_receipt(self, receipt_data):
        body = self._post(self.verify_url, receipt_data)
        if body.get("status") == SANDBOX_RECEIPT_STATUS:
            body = self._post(self.sandbox_url, receipt_data)
        if body.get("status") != 0:
            raise ValidationError(f"The App Store rejected this receipt (status {body.get('status')})", code="invalid_receipt")
        return body


class SubscriptionGate(Service):
    """Answers "is this user Pro?" and records store transactions."""

    def __init__(self, ctx, store_client=None):
        super().__init__(ctx)
        self._store_client = store_client

    @property
    def store_client(self):
        if self._store_client is None:
            self._store_client = AppStoreClient(self.config)
        return self._store_client

    # ---------------- entitlement ----------------
    def active_subscription(self, user=None):
        user = user or self.user
        now = self.ctx.now()
        candidates = (
            Subscription.query.filter_by(user_id=user.id, status="active")
            .order_by(Subscription.expires_at.desc())
            .all()
        )
        for subscription in candidates:
            if subscription.is_active_at(now):
                return subscription
        return None

    @property
    def is_pro_user(self):
        if self.ctx.user is None:
            return False
        return self.active_subscription() is not None

    def require_pro(self, feature=None):
        if not self.is_pro_user:
            if feature:
                logger.info(f"User {self.ctx.user_id} blocked from pro feature {feature}")
            raise ProFeatureRequiredError()

    def status(self):
        subscription = self.active_subscription() if self.ctx.user else None
        return {
            "is_pro_user": subscription is not None,
            "product_id": self.config["PRO_PRODUCT_ID"],
            "renewal_date": subscription.expires_at.isoformat() if subscription and subscription.expires_at else None,
            "features": pro_features(),
        }

    # ---------------- purchase / restore ----------------
    def _latest_transaction(self, body):
        product_id = self.config["PRO_PRODUCT_ID"]
        transactions = body.get("latest_receipt_info") or body.get("receipt", {}).get("in_app", [])
        matching = [t for t in transactions if t.get("product_id") == product_id]
        if not matching:
            return None
        return max(matching, key=lambda t: int(t.get("expires_date_ms") or t.get("purchase_date_ms") or 0))

    def _auto_renew(self, body, original_transaction_id):
        for info in body.get("pending_renewal_info", []):
            if info.get("original_transaction_id") == original_transaction_id:
                return info.get("auto_renew_status") == "1"
        return True

    def _record(self, body):
        transaction = self._latest_transaction(body)
        if transaction is None:
            return None

        now = self.ctx.now()
        original_id = transaction.get("original_transaction_id") or transaction.get("transaction_id")
        expires_at = _ms_to_datetime(transaction.get("expires_date_ms"))
        if transaction.get("cancellation_date_ms"):
            status = "canceled"
        elif expires_at is not None and expires_at <= now:
            status = "expired"
        else:
            status = "active"

        subscription = Subscription.query.filter_by(original_transaction_id=original_id).first()
        if subscription is None:
            subscription = Subscription(
                user_id=self.user.id,
                product_id=transaction["product_id"],
                original_transaction_id=original_id,
            )
            db.session.add(subscription)
        elif subscription.user_id != self.user.id:
            raise ValidationError("This purchase belongs to another account", code="receipt_in_use")

        subscription.apply_transaction(
            status=status,
            purchased_at=_ms_to_datetime(transaction.get("purchase_date_ms")),
            expires_at=expires_at,
            auto_renew=self._auto_renew(body, original_id),
            now=now,
        )
        return subscription

    def purchase(self, receipt_data):
        body = self.store_client.verify_receipt(receipt_data)
        subscription = self._record(body)
        if subscription is None:
            raise ValidationError("No purchase of the Pro subscription was found in this receipt", code="invalid_receipt")
        self.commit()
        logger.info(f"User {self.user.id} purchased {subscription.product_id} (status {subscription.status})")
        self.publish(SUBSCRIPTION_UPDATED, {"is_pro_user": self.is_pro_user})
        return subscription

    def restore(self, receipt_data):
        body = self.store_client.verify_receipt(receipt_data)
        subscription = self._record(body)
        self.commit()
        is_pro = self.is_pro_user
        logger.info(f"User {self.user.id} restored purchases, pro={is_pro}")
        self.publish(SUBSCRIPTION_UPDATED, {"is_pro_user": is_pro})
        return subscription
