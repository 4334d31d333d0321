# File path: modules/contacts/routes/__init__.py
# -V1 tailors / suppliers / customers address book

import logging

from flask import Blueprint, jsonify, request
from sqlalchemy import or_

from database.models import db, Contact
from modules.shared.errors import NotFoundError, ValidationError
from modules.shared.parsing import json_body
from modules.shared.status import CONTACT_TYPES
from modules.user.decorators import admin_required, login_required

contacts_bp = Blueprint("contacts_bp", __name__)

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "contact_type", "company", "phone", "whatsapp_phone", "email", "address", "notes")


def _get_contact(contact_id):
    contact = db.session.get(Contact, contact_id)
    if contact is None:
        raise NotFoundError(f"Contact {contact_id} not found.")
    return contact


def _apply_fields(contact, data):
    for key in EDITABLE_FIELDS:
        if key not in data:
            continue
        value = (data.get(key) or "").strip() or None
        if key == "name" and not value:
            raise ValidationError("Contact name is required.")
        if key == "contact_type":
            value = (value or "tailor").lower()
            if value not in CONTACT_TYPES:
                raise ValidationError(f"Invalid contact type: {value!r}.", allowed=list(CONTACT_TYPES))
        setattr(contact, key, value)


@contacts_bp.route("/", methods=["GET"])
@login_required
def contacts_index():
    q = Contact.query
    if request.args.get("show_inactive") != "1":
        q = q.filter(Contact.is_active == True)  # noqa: E712

    contact_type = (request.args.get("type") or "").strip().lower()
    if contact_type:
        q = q.filter(Contact.contact_type == contact_type)

    search = (request.args.get("q") or "").strip()
    if search:
        like = f"%{search}%"
        q = q.filter(or_(Contact.name.ilike(like), Contact.company.ilike(like), Contact.phone.ilike(like)))

    contacts = q.order_by(Contact.name.asc()).all()
    return jsonify({"success": True, "contacts": [c.to_dict() for c in contacts]})


@contacts_bp.route("/", methods=["POST"])
@login_required
def contacts_new():
    data = json_body(request)
    if not (data.get("name") or "").strip():
        raise ValidationError("Contact name is required.")

    contact = Contact(contact_type="tailor", is_active=True)
    _apply_fields(contact, data)
    db.session.add(contact)
    db.session.commit()

    logger.info("Contact %s (%s) created", contact.id, contact.name)
    return jsonify({"success": True, "message": "Contact created.", "contact": contact.to_dict()}), 201


@contacts_bp.route("/<int:contact_id>", methods=["GET"])
@login_required
def contact_detail(contact_id):
    return jsonify({"success": True, "contact": _get_contact(contact_id).to_dict()})


@contacts_bp.route("/<int:contact_id>", methods=["PATCH", "PUT"])
@login_required
def contact_update(contact_id):
    contact = _get_contact(contact_id)
    _apply_fields(contact, json_body(request))
    db.session.commit()
    return jsonify({"success": True, "message": "Contact updated.", "contact": contact.to_dict()})


@contacts_bp.route("/<int:contact_id>", methods=["DELETE"])
@admin_required
def contact_deactivate(contact_id):
    contact = _get_contact(contact_id)
    contact.is_active = False
    db.session.commit()
    logger.info("Contact %s deactivated", contact_id)
    return jsonify({"success": True, "message": "Contact deactivated."})
