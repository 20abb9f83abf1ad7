from hundred_days.extensions import db

STATIC_QUOTES = [
    ("The secret of getting ahead is getting started.", "Mark Twain"),
    ("It does not matter how slowly you go as long as you do not stop.", "Confucius"),
    ("Success is the sum of small efforts, repeated day in and day out.", "Robert Collier"),
    ("We are what we repeatedly do. Excellence, then, is not an act, but a habit.", "Will Durant"),
    ("Motivation is what gets you started. Habit is what keeps you going.", "Jim Ryun"),
    ("A journey of a thousand miles begins with a single step.", "Lao Tzu"),
    ("You don't have to be great to start, but you have to start to be great.", "Zig Ziglar"),
    ("Small daily improvements over time lead to stunning results.", "Robin Sharma"),
    ("Discipline is choosing between what you want now and what you want most.", "Abraham Lincoln"),
    ("The only way to do great work is to love what you do.", "Steve Jobs"),
]


class Quote(db.Model):
    __tablename__ = "quotes"

    id = db.Column(db.Integer, primary_key=True)
    text = db.Column(db.Text, nullable=False)
    author = db.Column(db.String(150), nullable=False, default="Unknown")
    source = db.Column(db.String(20), nullable=False, default="static")

    __table_args__ = (
        db.UniqueConstraint("text", "author", name="uq_quotes_text_author"),
    )

    def to_dict(self):
        return {'id': self.id, 'text': self.text, 'author': self.author}
