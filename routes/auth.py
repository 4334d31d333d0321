import logging

from flask import Blueprint, request, session, jsonify
from database.models import db, User
from modules.user.decorators import login_required

auth_bp = Blueprint("auth_bp", __name__, url_prefix="/auth")

logger = logging.getLogger(__name__)

@auth_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or request.form
    username = (data.get("username") or "").strip()
    password = data.get("password") or ""

    user = User.query.filter_by(username=username).first()
    if user and user.is_active and user.check_password(password):
        session.clear()
        session["user_id"] = user.id
        session["username"] = user.username
        session["name"] = user.name
        session["is_admin"] = user.is_admin()
        logger.info("User %s logged in", user.username)
        return jsonify({"success": True, "user": user.to_dict()})

    logger.info("Failed login for %r", username)
    return jsonify({"success": False, "error": "Invalid username or password"}), 401

@auth_bp.route("/logout", methods=["POST"])
def logout():
    session.clear()
    return jsonify({"success": True})

@auth_bp.route("/me", methods=["GET"])
@login_required
def me():
    user = db.session.get(User, session["user_id"])
    if user is None:
        session.clear()
        return jsonify({"success": False, "error": "Session user no longer exists"}), 401
    return jsonify({"success": True, "user": user.to_dict()})
