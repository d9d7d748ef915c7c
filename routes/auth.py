from flask import Blueprint, request, jsonify

from security import auth_session
from utils.auth_context import current_context, login_required


auth_bp = Blueprint("auth", __name__)


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}

    result = auth_session.login(data, current_context())
    return jsonify(result.to_dict()), 200


@auth_bp.post("/logout")
@login_required
def logout():
    revoked = auth_session.logout(current_context())
    return jsonify(message="Logged out successfully!", tokens_revoked=revoked), 200


@auth_bp.get("/user")
def user():
    account = auth_session.current_user(current_context())
    return jsonify(user=account.to_dict()), 200
