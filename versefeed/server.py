from flask import Flask
from flask_cors import CORS

from versefeed.core import config
from versefeed.routes.scripture_api import scripture_bp
from versefeed.routes.status_api import status_bp

SECURITY_HEADERS = {
    "X-DNS-Prefetch-Control": "on",
    "Strict-Transport-Security": "max-age=63072000; includeSubDomains; preload",
    "X-XSS-Protection": "1; mode=block",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "no-referrer",
}


def create_app(verse_service=None) -> Flask:
    app = Flask(__name__)

    # Injected service (tests); routes create a shared one otherwise
    app.config["VERSE_SERVICE"] = verse_service

    CORS(app, origins=config.CORS_ORIGINS)

    @app.after_request
    def add_security_headers(response):
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    # Register blueprints
    app.register_blueprint(scripture_bp)
    app.register_blueprint(status_bp)

    return app


def main():
    config.configure_logging()
    app = create_app()
    app.run(host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    main()
