"""
Ticket Routes
Issuance (called by order fulfillment), holder credentials and attendance.
"""

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from verification_service.auth import can_view_ticket, forbidden, staff_required
from verification_service.services import entitlement_store, issuance_service, scan_service
from verification_service.services.attendance import build_attendance_summary
from verification_service.services.credential_service import (
    credential_date_for,
    issue_credential,
    render_qr_data_url,
)
from verification_service.services.token_codec import parse_local_date

ticket_bp = Blueprint("tickets", __name__)


def _not_found():
    return jsonify({
        "success": False,
        "error_code": "TICKET_NOT_FOUND",
        "message": "The requested ticket could not be found."
    }), 404


@ticket_bp.route("/tickets", methods=["POST"])
@staff_required
def create_ticket_route():
    """
    Create a ticket and its per-day entitlements
    ---
    tags:
      - Tickets
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - event_id
            - user_id
            - ticket_type_id
          properties:
            event_id:
              type: string
            user_id:
              type: string
            ticket_type_id:
              type: string
            attendee_name:
              type: string
            attendee_dni:
              type: string
              description: Identity document number shown to gate staff
    responses:
      201:
        description: Ticket created
      400:
        description: Missing or invalid fields
      404:
        description: Event or ticket type not found
    """
    data = request.get_json(silent=True) or {}

    required = ["event_id", "user_id", "ticket_type_id"]
    missing = [f for f in required if not data.get(f)]
    if missing:
        return jsonify({
            "success": False,
            "error_code": "MISSING_FIELDS",
            "message": f"Missing fields: {', '.join(missing)}"
        }), 400

    try:
        ticket = issuance_service.create_ticket(
            event_id=data["event_id"],
            user_id=data["user_id"],
            ticket_type_id=data["ticket_type_id"],
            attendee_name=data.get("attendee_name"),
            attendee_dni=data.get("attendee_dni"),
        )
    except issuance_service.IssuanceError as e:
        status_code = 400 if e.error_code == "INVALID_USER" else 404
        return jsonify({"success": False, "error_code": e.error_code, "message": e.message}), status_code

    entitlements = entitlement_store.list_entitlements(ticket.ticket_id)
    return jsonify({
        "success": True,
        "data": {
            **ticket.to_dict(),
            "entitlements": [e.to_dict() for e in entitlements],
        }
    }), 201


@ticket_bp.route("/tickets/<uuid:ticket_id>/status", methods=["PATCH"])
@staff_required
def update_ticket_status_route(ticket_id):
    """
    Move a ticket through its lifecycle
    ---
    tags:
      - Tickets
    security:
      - Bearer: []
    parameters:
      - name: ticket_id
        in: path
        type: string
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - status
          properties:
            status:
              type: string
              enum: [CANCELLED, EXPIRED]
    responses:
      200:
        description: Ticket updated
      404:
        description: Ticket not found
      409:
        description: Transition not allowed
    """
    data = request.get_json(silent=True) or {}
    new_status = data.get("status")
    if not new_status:
        return jsonify({"success": False, "error_code": "MISSING_FIELDS", "message": "Missing field: status"}), 400

    ticket, error = issuance_service.update_ticket_status(ticket_id, new_status)
    if error:
        if "not found" in error:
            return _not_found()
        return jsonify({"success": False, "error_code": "INVALID_TRANSITION", "message": error}), 409

    return jsonify({"success": True, "data": ticket.to_dict()}), 200


@ticket_bp.route("/tickets/<uuid:ticket_id>/credential", methods=["GET"])
@jwt_required()
def get_ticket_credential(ticket_id):
    """
    Signed QR credential for one day of a ticket
    ---
    tags:
      - Tickets
    security:
      - Bearer: []
    parameters:
      - name: ticket_id
        in: path
        type: string
        required: true
      - name: date
        in: query
        type: string
        description: YYYY-MM-DD; defaults to today or the next entitled day
    responses:
      200:
        description: Credential, QR image data URL and attendance summary
      400:
        description: Malformed date
      404:
        description: Ticket not found or no entitlement on that date
      409:
        description: Ticket is not active
    """
    ticket = entitlement_store.get_ticket(ticket_id)
    if not ticket:
        return _not_found()
    if not can_view_ticket(ticket):
        return forbidden("Unauthorized to view this ticket")

    requested = None
    if request.args.get("date"):
        requested = parse_local_date(request.args["date"])
        if requested is None:
            return jsonify({
                "success": False,
                "error_code": "INVALID_DATE",
                "message": "date must be formatted YYYY-MM-DD"
            }), 400

    if ticket.status != "ACTIVE":
        return jsonify({
            "success": False,
            "error_code": "TICKET_INACTIVE",
            "message": f"Ticket is {ticket.status.lower()}."
        }), 409

    entitlements = entitlement_store.list_entitlements(ticket.ticket_id)
    today = scan_service.scan_today(current_app.config.get("SCAN_TIMEZONE"))
    on = credential_date_for(entitlements, today, requested)
    if on is None:
        return jsonify({
            "success": False,
            "error_code": "NO_ENTITLEMENT",
            "message": "Ticket has no entitlement for the requested date."
        }), 404

    credential = issue_credential(current_app.extensions["token_codec"], ticket, on)
    return jsonify({
        "success": True,
        "data": {
            "ticket": ticket.to_dict(),
            "date": on.isoformat(),
            "credential": credential.to_dict(),
            "qr_code": render_qr_data_url(credential),
            "attendance": build_attendance_summary(entitlements).to_dict(),
        }
    }), 200


@ticket_bp.route("/tickets/<uuid:ticket_id>/attendance", methods=["GET"])
@jwt_required()
def get_ticket_attendance(ticket_id):
    """
    Days used and remaining for a ticket
    ---
    tags:
      - Tickets
    security:
      - Bearer: []
    parameters:
      - name: ticket_id
        in: path
        type: string
        required: true
    responses:
      200:
        description: Attendance summary
      404:
        description: Ticket not found
    """
    ticket = entitlement_store.get_ticket(ticket_id)
    if not ticket:
        return _not_found()
    if not can_view_ticket(ticket):
        return forbidden("Unauthorized to view this ticket")

    summary = build_attendance_summary(entitlement_store.list_entitlements(ticket.ticket_id))
    return jsonify({"success": True, "data": summary.to_dict()}), 200


@ticket_bp.route("/tickets/<uuid:ticket_id>/scans", methods=["GET"])
@staff_required
def get_ticket_scans(ticket_id):
    """
    Scan audit history for a ticket
    ---
    tags:
      - Tickets
    security:
      - Bearer: []
    parameters:
      - name: ticket_id
        in: path
        type: string
        required: true
    responses:
      200:
        description: Scan attempts, oldest first
      404:
        description: Ticket not found
    """
    ticket = entitlement_store.get_ticket(ticket_id)
    if not ticket:
        return _not_found()

    scans = entitlement_store.scan_history(ticket.ticket_id)
    return jsonify({"success": True, "data": [s.to_dict() for s in scans]}), 200
