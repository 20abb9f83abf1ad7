from flask import Blueprint

challenges_bp = Blueprint('challenges', __name__)
progress_bp = Blueprint('progress', __name__)

from . import challenges, check_ins, progress  # noqa: E402,F401
