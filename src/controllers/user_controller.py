from flask import (
    Blueprint,
    redirect,
    render_template,
    request,
    session,
    url_for,
)
from structlog import get_logger

from src.consumer import has_illegal_uri_chars
from src.models import User

logger = get_logger(__name__)

user_bp = Blueprint("user", __name__)


def is_local_path(url: str | None) -> bool:
    """Only same-site absolute paths are allowed as login redirect targets."""
    if not url or not url.startswith("/"):
        return False
    if url.startswith("//") or "\\" in url:
        return False
    return not has_illegal_uri_chars(url)


@user_bp.route("/login", methods=["GET", "POST"])
def login():
    """User login page.
    ---
    tags:
      - User
    parameters:
      - name: username
        in: formData
        type: string
        required: false
        description: Username for login (POST only)
      - name: password
        in: formData
        type: string
        required: false
        description: Password for login (POST only)
      - name: next
        in: query
        type: string
        required: false
        description: URL to redirect after successful login
    responses:
      200:
        description: Login page HTML (GET) or error page (POST with invalid credentials)
      302:
        description: Redirect to dashboard or next URL on successful login
    """
    if request.method == "POST":
        username = request.form.get("username")
        password = request.form.get("password")

        try:
            user = User.get(User.username == username)
            if user.check_password(password):
                session["user_id"] = user.id
                logger.info("user_logged_in", username=username)
                # Redirect back to the admin page we came from
                next_url = request.args.get("next")
                if not is_local_path(next_url):
                    next_url = url_for("dashboard")
                return redirect(next_url)
        except User.DoesNotExist:
            pass

        logger.info("user_login_failed", username=username)
        return render_template("login.html", error="Invalid username or password")

    return render_template("login.html")


@user_bp.route("/logout")
def logout():
    """Log out the current user.
    ---
    tags:
      - User
    responses:
      302:
        description: Redirect to dashboard after logout
    """
    session.pop("user_id", None)
    return redirect(url_for("dashboard"))
