"""
Scan Routes
POST /api/scans/validate (staff QR scan at venue entry)
POST /api/scans/lookup   (staff manual search, read-only)
"""

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity

from verification_service.auth import staff_required
from verification_service.services import lookup_service, scan_service

scan_bp = Blueprint("scans", __name__)


def _bad_request(error_code, message):
    return jsonify({"success": False, "error_code": error_code, "message": message}), 400


@scan_bp.route("/api/scans/validate", methods=["POST"])
@staff_required
def validate_scan():
    """
    Validate a scanned ticket QR and register today's attendance
    ---
    tags:
      - Scans
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - qr_data
          properties:
            qr_data:
              type: string
              description: Raw text decoded from the QR code
            event_id:
              type: string
              description: Event the gate is scanning for
    responses:
      200:
        description: Scan outcome (ACCEPTED, ALREADY_USED, INVALID, ...)
      400:
        description: Missing qr_data
      403:
        description: Staff role required
      503:
        description: Store unavailable, retry the scan
    """
    data = request.get_json(silent=True) or {}
    qr_data = data.get("qr_data")
    if not qr_data:
        return _bad_request("MISSING_FIELDS", "Missing field: qr_data")

    result = scan_service.scan(
        current_app.extensions["token_codec"],
        qr_data,
        today=scan_service.scan_today(current_app.config.get("SCAN_TIMEZONE")),
        staff_id=get_jwt_identity(),
        expected_event_id=data.get("event_id"),
    )
    return jsonify(result.to_dict()), 200


@scan_bp.route("/api/scans/lookup", methods=["POST"])
@staff_required
def lookup_ticket():
    """
    Preview a ticket by code or id without consuming it
    ---
    tags:
      - Scans
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - ticket
          properties:
            ticket:
              type: string
              description: Ticket code (XXXX-XXXX-XXXX) or ticket id
            event_id:
              type: string
    responses:
      200:
        description: Ticket, entitlements, attendance and scan preview
      404:
        description: Ticket not found
    """
    data = request.get_json(silent=True) or {}
    ticket_ref = (data.get("ticket") or "").strip()
    if not ticket_ref:
        return _bad_request("MISSING_FIELDS", "Missing field: ticket")

    result = lookup_service.lookup(
        ticket_ref,
        today=scan_service.scan_today(current_app.config.get("SCAN_TIMEZONE")),
        expected_event_id=data.get("event_id"),
    )
    if result is None:
        return jsonify({
            "success": False,
            "error_code": "TICKET_NOT_FOUND",
            "message": "The requested ticket could not be found."
        }), 404

    return jsonify({"success": True, "data": result.to_dict()}), 200
