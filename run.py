import eventlet
eventlet.monkey_patch()

from hundred_days import create_app  # noqa: E402
from hundred_days.extensions import socketio  # noqa: E402

app = create_app()

if __name__ == '__main__':
    socketio.run(app, debug=app.config.get('DEBUG', False), port=5000)
