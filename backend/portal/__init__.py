from flask import Flask
from .config import Config
from .errors import register_error_handlers
from .extensions import db, jwt, limiter, migrate, cors, notifier


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    db.init_app(app)
    jwt.init_app(app)
    cors.init_app(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}}, supports_credentials=True)
    limiter.init_app(app)
    migrate.init_app(app, db)
    notifier.init_app(app)

    from . import models
    from .routes import register_routes
    from .cli import register_commands

    @jwt.token_in_blocklist_loader
    def check_if_token_revoked(jwt_header, jwt_payload):
        jti = jwt_payload["jti"]
        token = db.session.query(models.TokenBlocklist).filter_by(jti=jti).first()
        return token is not None

    register_routes(app)
    register_error_handlers(app)
    register_commands(app)

    with app.app_context():
        db.create_all()

    return app
