# shop_admin/wsgi.py
import logging
import os

# Show INFO logs even outside the werkzeug access log
logging.basicConfig(level=logging.INFO)

from shop_admin.app import create_app  # noqa: E402
from shop_admin.extensions import socketio  # noqa: E402

# For gunicorn / flask --app shop_admin.wsgi
app = create_app()


if __name__ == "__main__":
    socketio.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3000")),
        debug=os.getenv("FLASK_DEBUG", "0") == "1",
        allow_unsafe_werkzeug=True,
    )
