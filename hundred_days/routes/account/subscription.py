from flask import current_app, jsonify, request

from hundred_days.context import current_context
from hundred_days.schemas.account import receipt_schema, subscription_schema
from hundred_days.services.subscription_service import SubscriptionGate
from hundred_days.utils.decorators import login_required_user
from . import account_bp


def _gate():
    return SubscriptionGate(current_context(), store_client=current_app.extensions.get("app_store_client"))


@account_bp.route("/subscription", methods=["GET"])
@login_required_user
def subscription_status(current_user):
    return jsonify(_gate().status()), 200


@account_bp.route("/subscription/purchase", methods=["POST"])
@login_required_user
def purchase(current_user):
    data = receipt_schema.load(request.get_json(silent=True) or {})
    gate = _gate()
    subscription = gate.purchase(data["receipt_data"])
    return jsonify({
        "subscription": subscription_schema.dump(subscription),
        "status": gate.status(),
    }), 200


@account_bp.route("/subscription/restore", methods=["POST"])
@login_required_user
def restore(current_user):
    data = receipt_schema.load(request.get_json(silent=True) or {})
    gate = _gate()
    subscription = gate.restore(data["receipt_data"])
    return jsonify({
        "subscription": subscription_schema.dump(subscription) if subscription else None,
        "status": gate.status(),
    }), 200
