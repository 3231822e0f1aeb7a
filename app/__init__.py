from flask import Flask
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent


def create_app(config: dict = None):
    """Flask application factory."""
    app = Flask(__name__,
                template_folder='static/templates',
                static_folder='static')

    app.config['UPLOAD_FOLDER'] = str(BASE_DIR / 'main' / 'img')
    app.config['OUTPUT_FOLDER'] = str(BASE_DIR / 'static' / 'output')
    app.config['MAX_CONTENT_LENGTH'] = 64 * 1024 * 1024
    if config:
        app.config.update(config)

    # Create necessary directories
    Path(app.config['UPLOAD_FOLDER']).mkdir(parents=True, exist_ok=True)
    Path(app.config['OUTPUT_FOLDER']).mkdir(parents=True, exist_ok=True)

    # Register blueprints
    from app.main import main_bp
    app.register_blueprint(main_bp)

    return app
