from functools import wraps
from flask import session, jsonify

from modules.shared.actors import UserActor


def login_required(f):
    @wraps(f)
    def wrapped(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "error": "Please log in to access this resource."}), 401
        return f(*args, **kwargs)
    return wrapped

def admin_required(view_func):
    @wraps(view_func)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "error": "Please log in to access this resource."}), 401
        if not session.get("is_admin"):
            return jsonify({"success": False, "error": "Admin access required."}), 403
        return view_func(*args, **kwargs)
    return wrapper

def current_actor():
    user_id = session.get("user_id")
    if not user_id:
        return None
    return UserActor(user_id=int(user_id), display_name=session.get("name") or session.get("username"))
