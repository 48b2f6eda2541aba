from flasgger import Swagger
from flask import Flask, render_template

from src import config
from src.auth import get_current_user
from src.controllers.consumer_controller import consumer_bp
from src.controllers.user_controller import user_bp
from src.log import configure_logging
from src.models import ConsumerStore, User, create_test_data, init_db

configure_logging(config.LOG_LEVEL, config.LOG_JSON)

app = Flask(__name__)
app.secret_key = config.SECRET_KEY

# Register blueprints
app.register_blueprint(consumer_bp)
app.register_blueprint(user_bp, url_prefix="/user")

# Configure Swagger
swagger_config = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec",
            "route": "/apispec.json",
            "rule_filter": lambda rule: True,
            "model_filter": lambda tag: True,
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/swagger",
}

swagger_template = {
    "info": {
        "title": "OAuth Consumer Registry API",
        "description": "Registers and manages OAuth 1.0a consumers "
        "(key, name, shared secret and callback URL).",
        "version": "1.0.0",
        "contact": {
            "name": "API Support",
        },
    },
    "tags": [
        {"name": "Consumer", "description": "OAuth consumer administration"},
        {"name": "User", "description": "Administrator login"},
    ],
}

swagger = Swagger(app, config=swagger_config, template=swagger_template)


@app.route("/")
def dashboard():
    """Dashboard home page."""
    user = get_current_user()
    consumer_count = ConsumerStore().count()
    user_count = User.select().count()
    return render_template(
        "dashboard.html",
        user=user,
        consumer_count=consumer_count,
        user_count=user_count,
    )


# Initialize database on startup
with app.app_context():
    init_db()
    create_test_data()

if __name__ == "__main__":
    app.run(host=config.HOST, debug=config.DEBUG, port=config.PORT)
