import logging
import random

from hundred_days.extensions import db
from hundred_days.models.quote import STATIC_QUOTES, Quote

logger = logging.getLogger(__name__)


def seed_quotes():
    """Insert the bundled quotes that are not stored yet. Returns the count added."""
    existing = {(q.text, q.author) for q in Quote.query.all()}
    added = 0
    for text, author in STATIC_QUOTES:
        if (text, author) not in existing:
            db.session.add(Quote(text=text, author=author, source="static"))
            added += 1
    if added:
        db.session.commit()
        logger.info(f"Seeded {added} quotes")
    return added


def _all_quotes():
    quotes = Quote.query.order_by(Quote.id).all()
    if not quotes and seed_quotes():
        quotes = Quote.query.order_by(Quote.id).all()
    return quotes


def quote_of_the_day(today):
    """Same quote for everyone on a given day."""
    quotes = _all_quotes()
    if not quotes:
        return None
    return quotes[today.toordinal() % len(quotes)]


def random_quote():
    quotes = _all_quotes()
    return random.choice(quotes) if quotes else None
