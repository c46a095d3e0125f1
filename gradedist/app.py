from flask import Flask
from flask_cors import CORS

from . import config
from .routes.analytics import analytics_bp
from .routes.courses import courses_bp
from .routes.meta import meta_bp
from .routes.periods import periods_bp

def create_app():
    app = Flask(__name__)

    # ---- CORS ----
    CORS(app, resources={r"/api/*": {"origins": [config.FRONTEND_ORIGIN]}})

    # ---- Blueprints ----
    app.register_blueprint(meta_bp,      url_prefix="/api")
    app.register_blueprint(periods_bp,   url_prefix="/api")
    app.register_blueprint(courses_bp,   url_prefix="/api")
    app.register_blueprint(analytics_bp, url_prefix="/api")

    @app.get("/")
    def root():
        return {"ok": True, "service": "gradedist API", "docs": "/api/health"}

    return app

if __name__ == "__main__":
    app = create_app()
    app.run(host="127.0.0.1", port=5001, debug=True)
