from flask import Blueprint

from .prompt_routes import prompts_bp

# Routes are served from the root (/upload, /prompts/all) for existing clients.
api_v1 = Blueprint('api_v1', __name__)

api_v1.register_blueprint(prompts_bp)
