from flask import current_app, render_template, request, jsonify, send_from_directory
from werkzeug.utils import secure_filename
from pathlib import Path
import base64
import io
import cv2
import numpy as np
from PIL import Image
from app.main import main_bp
from app.main.template_matching import (
    TemplateMatcher, MatchConfig, RenderConfig, TemplateMatchError, decode_raster
)
from app.main.template_matching.loader import decode_image
from app.main.template_matching.match_visualizer import MatchVisualizer
from app.main.template_matching.performance import print_performance_report

ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg', 'tif', 'tiff', 'bmp'}


class InputMissing(Exception):
    """Request does not name or carry a required image."""


def allowed_file(filename):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def upload_folder() -> Path:
    return Path(current_app.config['UPLOAD_FOLDER'])


def output_folder() -> Path:
    return Path(current_app.config['OUTPUT_FOLDER'])


def array_to_base64(img_array: np.ndarray) -> str:
    """Encode a gray or BGR image as a base64 PNG."""
    if img_array.ndim == 3:
        img_array = cv2.cvtColor(img_array, cv2.COLOR_BGR2RGB)
    img = Image.fromarray(img_array)
    buffer = io.BytesIO()
    img.save(buffer, format='PNG')
    return base64.b64encode(buffer.getvalue()).decode('utf-8')


def request_options() -> dict:
    """Form fields or JSON body, whichever the request carries."""
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


def parse_bool(value, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


def read_image_bytes(field: str, options: dict) -> tuple:
    """
    Image bytes for a request field.

    Either an uploaded file under that field name or the name of a file
    previously stored via /upload.

    Returns:
        Tuple of (filename, bytes)

    Raises:
        InputMissing: Neither a file nor a filename was given
        FileNotFoundError: Named file was never uploaded
    """
    file = request.files.get(field)
    if file is not None and file.filename != '':
        return secure_filename(file.filename), file.read()

    filename = options.get(field)
    if not filename:
        raise InputMissing(f"No {field} image provided")

    filepath = upload_folder() / secure_filename(filename)
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filename}")
    return filepath.name, filepath.read_bytes()


@main_bp.route('/')
def index():
    return render_template("index.html")


@main_bp.route('/upload', methods=['POST'])
def upload_image():
    """Handle image upload."""
    if 'file' not in request.files:
        return jsonify({'error': 'No file provided'}), 400

    file = request.files['file']

    if file.filename == '':
        return jsonify({'error': 'No file selected'}), 400

    if file and allowed_file(file.filename):
        filename = secure_filename(file.filename)
        filepath = upload_folder() / filename
        file.save(str(filepath))

        return jsonify({
            'success': True,
            'filename': filename,
            'message': 'File uploaded successfully'
        })

    return jsonify({'error': 'Invalid file type. Please upload PNG, JPG, TIFF or BMP'}), 400


@main_bp.route('/match', methods=['POST'])
def match():
    """
    Locate the template inside the search image.

    Request (multipart files or form/JSON filenames of uploaded images):
        search, template: images
        mode: "draw", "overlay", "both" or "none" (default: "draw")
        stretch: bool (default: true)
        colormap: OpenCV colormap name or empty (default: none)
        transform: "opencv" or "scipy" (default: "opencv")

    Returns:
    {
        "success": true,
        "coords": [x, y],
        "score": 0.98,
        "report": "Match Coords: (x,y) And Score In Range 0 to 1: (0.98)",
        "surface_shape": [height, width],
        "images": {"surface": "base64...", "match": "base64..."},
        "files": {"surface": "surface_<name>.png", ...}
    }
    """
    options = request_options()

    try:
        search_name, search_bytes = read_image_bytes('search', options)
        _, template_bytes = read_image_bytes('template', options)

        config = MatchConfig(transform=options.get('transform', 'opencv'))
        render = RenderConfig(
            stretch=parse_bool(options.get('stretch'), True),
            colormap=options.get('colormap') or None,
            mode=options.get('mode', 'draw'),
        ).validate()

        matcher = TemplateMatcher(config)
        surface, result = matcher.match(decode_raster(template_bytes), decode_raster(search_bytes))
        print(result.report())
        print_performance_report()

        visualizer = MatchVisualizer(output_dir=str(output_folder()))
        images = visualizer.render(decode_image(search_bytes), decode_image(template_bytes),
                                   surface, result, render)
        files = visualizer.save(images, search_name)

        return jsonify({
            'success': True,
            'coords': list(result.coords),
            'score': result.score,
            'report': result.report(),
            'surface_shape': list(surface.shape),
            'images': {kind: array_to_base64(img) for kind, img in images.items()},
            'files': files,
        })

    except InputMissing as e:
        return jsonify({'error': str(e)}), 400
    except FileNotFoundError as e:
        return jsonify({'error': str(e)}), 404
    except TemplateMatchError as e:
        return jsonify({'error': str(e), 'type': type(e).__name__}), 422
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        return jsonify({'error': str(e)}), 500


@main_bp.route('/similarity', methods=['POST'])
def similarity():
    """Single NCC score of two equally sized images (image_a, image_b)."""
    options = request_options()

    try:
        _, bytes_a = read_image_bytes('image_a', options)
        _, bytes_b = read_image_bytes('image_b', options)

        matcher = TemplateMatcher(MatchConfig(transform=options.get('transform', 'opencv')))
        score = matcher.similarity(decode_raster(bytes_a), decode_raster(bytes_b))

        return jsonify({'success': True, 'score': score})

    except InputMissing as e:
        return jsonify({'error': str(e)}), 400
    except FileNotFoundError as e:
        return jsonify({'error': str(e)}), 404
    except TemplateMatchError as e:
        return jsonify({'error': str(e), 'type': type(e).__name__}), 422
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception as e:
        return jsonify({'error': str(e)}), 500


@main_bp.route('/output/<path:filename>')
def output_file(filename):
    """Serve a saved visualization."""
    return send_from_directory(str(output_folder()), filename)
