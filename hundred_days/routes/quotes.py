from flask import Blueprint, jsonify

from hundred_days.context import build_context
from hundred_days.errors import NotFoundError
from hundred_days.services.quote_service import quote_of_the_day, random_quote

quotes_bp = Blueprint('quotes', __name__)


@quotes_bp.route('/today', methods=['GET'])
def today():
    quote = quote_of_the_day(build_context().today())
    if quote is None:
        raise NotFoundError("No quotes available")
    return jsonify(quote.to_dict()), 200


@quotes_bp.route('/random', methods=['GET'])
def random():
    quote = random_quote()
    if quote is None:
        raise NotFoundError("No quotes available")
    return jsonify(quote.to_dict()), 200
