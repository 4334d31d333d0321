# /modules/user/routes/__init__.py

import logging

from flask import Blueprint, jsonify, request, session
from database.models import db, User
from modules.shared.errors import NotFoundError, ValidationError
from modules.shared.parsing import json_body
from modules.user.decorators import admin_required

admin_users_bp = Blueprint("admin_users_bp", __name__)

logger = logging.getLogger(__name__)

USER_ROLES = ("admin", "user", "tailor")


def _get_user(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found.")
    return user


def _clean_role(role):
    role = (role or "").strip().lower()
    if role not in USER_ROLES:
        raise ValidationError(f"Invalid role: {role!r}.", allowed=list(USER_ROLES))
    return role


@admin_users_bp.route("/", methods=["GET"])
@admin_required
def user_index():
    users = User.query.order_by(User.id).all()
    return jsonify({"success": True, "users": [u.to_dict() for u in users]})

@admin_users_bp.route("/", methods=["POST"])
@admin_required
def add_user():
    data = json_body(request)
    username = (data.get("username") or "").strip()
    password = data.get("password") or ""
    role = data.get("role") or "user"

    if not username or not password:
        raise ValidationError("Username and password are required.")
    role = _clean_role(role)
    if User.query.filter_by(username=username).first():
        raise ValidationError("Username already exists.")

    email = (data.get("email") or "").strip() or None
    if email and User.query.filter_by(email=email).first():
        raise ValidationError("Email already in use.")

    user = User(
        username=username,
        name=(data.get("name") or "").strip() or username,
        email=email,
        role=role,
        whatsapp_phone=(data.get("whatsapp_phone") or "").strip() or None,
    )
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    logger.info("User %s added (role=%s)", username, role)
    return jsonify({"success": True, "message": f"User '{username}' added.", "user": user.to_dict()}), 201

@admin_users_bp.route("/<int:user_id>", methods=["PATCH", "PUT"])
@admin_required
def edit_user(user_id):
    user = _get_user(user_id)
    data = json_body(request)

    if data.get("role"):
        user.role = _clean_role(data["role"])
    if data.get("password"):
        user.set_password(data["password"])
    for key in ("name", "email", "whatsapp_phone"):
        if key in data:
            setattr(user, key, (data.get(key) or "").strip() or None)
    if not user.name:
        user.name = user.username
    if "is_active" in data:
        user.is_active = data.get("is_active") in (True, "1", "true", "on")

    db.session.commit()
    return jsonify({"success": True, "message": f"Updated user '{user.username}'", "user": user.to_dict()})

@admin_users_bp.route("/<int:user_id>", methods=["DELETE"])
@admin_required
def delete_user(user_id):
    user = _get_user(user_id)
    if user.id == session.get("user_id"):
        raise ValidationError("You cannot deactivate your own account.")

    # history rows point at users, so deactivate instead of deleting
    user.is_active = False
    db.session.commit()
    logger.info("User %s deactivated", user.username)
    return jsonify({"success": True, "message": f"Deactivated user '{user.username}'"})
