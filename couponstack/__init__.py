# --- couponstack/__init__.py ---
from flask import Flask, jsonify
from .extensions import db, jwt, cors, migrate
from .config import Config
from .errors import register_error_handlers
from .utils.logging import add_context, clear_context, configure_logging, get_logger
from .utils.net import request_log_context

def create_app(config_object=None):
    app = Flask(__name__, instance_relative_config=True)

    config_object = config_object or Config
    app.config.from_object(config_object)
    config_object.init_app(app)

    configure_logging(app.config.get("ENVIRONMENT"), app.config.get("LOG_LEVEL"))
    logger = get_logger(__name__)

    # Init extensions
    db.init_app(app)
    jwt.init_app(app)
    cors.init_app(app, resources={r"/*": {"origins": "*"}})
    migrate.init_app(app, db)

    # Register blueprints
    from .coupon import bp as coupon_bp; app.register_blueprint(coupon_bp)
    from .cart import bp as cart_bp; app.register_blueprint(cart_bp)
    from .order import bp as order_bp; app.register_blueprint(order_bp)
    from .settings import bp as settings_bp; app.register_blueprint(settings_bp)

    register_error_handlers(app)

    from .cli import register_cli
    register_cli(app)

    @app.before_request
    def _bind_request_context():
        clear_context()
        add_context(**request_log_context())

    @app.get("/")
    def health():
        return jsonify(ok=True, msg="API running")

    with app.app_context():
        from . import model  # noqa: F401  (register tables)
        db.create_all()

    logger.debug("app_created", environment=app.config.get("ENVIRONMENT"),
                 blueprints=sorted(app.blueprints.keys()))
    return app
