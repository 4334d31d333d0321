# In app.py (project root)
import logging
import os

from flask import Flask
from flask_migrate import Migrate

from config import Config
from routes.auth import auth_bp
from routes.dashboard import dashboard_bp
from modules import module_blueprints
from modules.shared.errors import register_error_handlers
from database.models import db
from database.commands import register_commands

migrate = Migrate()

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(app):
    level = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    root = logging.getLogger()
    if not any(getattr(h, "_erp_handler", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._erp_handler = True
        root.addHandler(handler)
    root.setLevel(level)


def create_app(config_object=None):
    app = Flask(__name__)
    app.config.from_object(config_object or Config)

    configure_logging(app)

    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:///") and not app.config.get("TESTING"):
        os.makedirs(app.instance_path, exist_ok=True)

    db.init_app(app)
    migrate.init_app(app, db, render_as_batch=True)

    if app.config.get("AUTO_CREATE_TABLES"):
        with app.app_context():
            db.create_all()

    # Register Blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(dashboard_bp)

    for name, blueprint, prefix in module_blueprints:
        app.logger.debug("Registering %s -> prefix: %s", name, prefix)
        app.register_blueprint(blueprint, url_prefix=prefix)

    register_error_handlers(app)
    register_commands(app)

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True)
