from flask import Blueprint, request, jsonify

from utils import registry
from utils.auth_context import active_user_required, current_context


registration_bp = Blueprint("registration", __name__, url_prefix="/registration")


def _payload() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@registration_bp.get("")
@active_user_required
def list_registrants():
    page = registry.list_registrants(request.args.to_dict(), current_context())
    return jsonify(results={
        "data": [p.to_dict() for p in page.items],
        "current_page": page.page,
        "per_page": page.per_page,
        "total": page.total,
        "last_page": page.pages,
    }), 200


@registration_bp.get("/<int:personnel_id>")
@active_user_required
def get_registrant(personnel_id: int):
    personnel = registry.get_registrant(personnel_id, current_context())
    return jsonify(data=personnel.to_dict()), 200


@registration_bp.post("")
@active_user_required
def create_registrant():
    personnel = registry.create_registrant(_payload(), current_context())
    return jsonify(data=personnel.to_dict(), message="Registrant created successfully"), 201


@registration_bp.put("/<int:personnel_id>")
@active_user_required
def update_registrant(personnel_id: int):
    personnel = registry.update_registrant(personnel_id, _payload(), current_context())
    return jsonify(data=personnel.to_dict(), message="Registrant updated successfully"), 200


@registration_bp.delete("/<int:personnel_id>")
@active_user_required
def delete_registrant(personnel_id: int):
    registry.delete_registrant(personnel_id, current_context())
    return jsonify(message="Registrant deleted successfully"), 200
