# Overview: Flask API routes for clients; parses input and returns JSON responses.

from flask import Blueprint, g, request

from ..decorators import require_auth
from ..models import Client
from ..services import clients_service
from ..services.clients_service import ClientNotFoundError
from ..validation import ModelValidationPolicy, ValidationError, validate_payload

CLIENT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "phone", "address"},
    required_on_create={"name"},
)

clients_bp = Blueprint("clients", __name__, url_prefix="/api/clients")


@clients_bp.get("")
@require_auth
def list_clients():
    return clients_service.list_clients(
        g.account_id,
        search=request.args.get("q"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", default=20, type=int),
    )


@clients_bp.get("/<int:client_id>")
@require_auth
def get_client(client_id: int):
    try:
        return {"client": clients_service.get_client(g.account_id, client_id).to_dict()}
    except ClientNotFoundError:
        return {"error": "Client not found"}, 404


@clients_bp.post("")
@require_auth
def create_client():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Client, payload=payload, policy=CLIENT_POLICY, partial=False)
    except ValidationError as e:
        return {"error": str(e)}, 400
    client = clients_service.create_client(g.account_id, patch)
    return {"client": client.to_dict()}, 201


@clients_bp.put("/<int:client_id>")
@require_auth
def update_client(client_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Client, payload=payload, policy=CLIENT_POLICY, partial=True)
    except ValidationError as e:
        return {"error": str(e)}, 400
    try:
        client = clients_service.update_client(g.account_id, client_id, patch)
    except ClientNotFoundError:
        return {"error": "Client not found"}, 404
    return {"client": client.to_dict()}


@clients_bp.delete("/<int:client_id>")
@require_auth
def delete_client(client_id: int):
    try:
        unlinked = clients_service.delete_client(g.account_id, client_id)
    except ClientNotFoundError:
        return {"error": "Client not found"}, 404
    return {"ok": True, "documents_unlinked": unlinked}
