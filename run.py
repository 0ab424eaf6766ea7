import atexit
import logging
import os
from flask_cors import CORS
from app import create_app, close_db
from app.config import Config

logging.basicConfig(level=logging.DEBUG if Config.DEBUG else logging.INFO)

# Create Flask app instance
app = create_app()
atexit.register(close_db, app)

# Dynamically configure CORS
CORS(app, resources={
    r"/api/*": {
        "origins": Config.CORS_ORIGINS,
        "methods": ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        "allow_headers": ["Authorization", "Content-Type"],
        "supports_credentials": True,
    }
})

# Log the environment and allowed CORS origins
app.logger.info(f"Running in {'production' if os.getenv('FLASK_ENV') == 'production' else 'development'} mode")
app.logger.info(f"Allowed CORS Origins: {Config.CORS_ORIGINS}")

if __name__ == '__main__':
    debug_mode = Config.DEBUG
    app.logger.info(f"Debug mode is {'on' if debug_mode else 'off'}")
    app.run(debug=debug_mode, host="0.0.0.0", port=Config.PORT)
