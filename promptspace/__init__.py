from flask import Flask
from flask_cors import CORS
from flasgger import Flasgger
import structlog
from config import config
from .errors import SyncError
from .extensions import PromptSpace
from .logging_config import configure_logging
import os

log = structlog.get_logger()


def create_app(config_name=None, **overrides):
    """
    Application factory function.

    ``overrides`` are applied on top of the selected config class, which is
    how tests point the app at a throwaway working copy and remote.
    """
    if config_name is None:
        config_name = os.getenv('FLASK_CONFIG', 'default')

    app = Flask(__name__)
    app.config.from_object(config[config_name])
    app.config.update(overrides)

    configure_logging(
        log_level=app.config.get("LOG_LEVEL", "INFO"),
        is_debug=app.config.get("DEBUG", False)
    )

    promptspace = PromptSpace.from_config(app.config).init_app(app)

    if app.config.get("SYNC_ON_STARTUP", False):
        # Startup sync is best effort: the listing endpoint retries on every call.
        try:
            promptspace.synchronizer.ensure_up_to_date()
        except SyncError as e:
            log.warning("startup.sync_failed", error=str(e))

    from .api.v1 import api_v1
    app.register_blueprint(api_v1)

    from .cli.repo_commands import init_repo_commands
    init_repo_commands(app)

    Flasgger(app)

    CORS(app, resources={r"/*": {"origins": "*"}})

    @app.after_request
    def set_security_headers(response):
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        return response

    return app
