# backend/leunique/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import init_extensions


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    # Open the entity store and session backend
    init_extensions(app)

    from .decorators import load_request_user
    app.before_request(load_request_user)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.public import public_bp
    from .routes.auth import auth_bp
    from .routes.users import users_bp
    from .routes.products import products_bp
    from .routes.clients import clients_bp
    from .routes.chats import chats_bp
    from .routes.orders import orders_bp
    from .routes.whatsapp import whatsapp_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(public_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(clients_bp)
    app.register_blueprint(chats_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(whatsapp_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in app.config["CORS_ALLOWED_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
