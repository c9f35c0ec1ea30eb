from flask import Flask
from flask_cors import CORS
from brewday.core.config import get_config, logger
from brewday.api.routes import api_bp

app = Flask(__name__)
CORS(app)

# Register Blueprints
app.register_blueprint(api_bp)

@app.after_request
def add_header(response):
    """Calculated results depend on the posted recipe, never cache them."""
    response.headers['Cache-Control'] = 'no-store, no-cache, must-revalidate, max-age=0'
    return response

def run():
    from waitress import serve
    port = int(get_config("port"))
    logger.info(f"Starting Production Server (waitress) on port {port}...")
    serve(app, host='0.0.0.0', port=port)

if __name__ == '__main__':
    run()
