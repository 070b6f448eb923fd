# Overview: Public contact form and newsletter routes, plus their admin listings.

from flask import Blueprint, request, current_app

from ..extensions import get_store
from ..models import ContactMessage, NewsletterSubscription
from ..services import contact_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_contact,
    ValidationError,
    ConflictError,
)
from ..decorators import require_admin

CONTACT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "phone", "message", "newsletterOptIn"},
    required_on_create={"name", "email", "message"},
)

NEWSLETTER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "phone"},
    required_on_create={"name", "email"},
)

public_bp = Blueprint("public", __name__, url_prefix="/api")


@public_bp.post("/contact")
def submit_contact_route():
    """Contact form. No authentication."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=ContactMessage, payload=payload, policy=CONTACT_POLICY, partial=False)
        enforce_rules_contact(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = contact_service.submit_contact_message(get_store(), patch)
    except Exception:
        current_app.logger.exception("Failed to store contact message")
        return {"error": "Internal server error"}, 500

    return created, 201


@public_bp.post("/newsletter")
def subscribe_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=NewsletterSubscription, payload=payload, policy=NEWSLETTER_POLICY, partial=False)
        enforce_rules_contact(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = contact_service.subscribe(get_store(), patch)
    except ConflictError as e:
        return {"error": str(e)}, 409

    return created, 201


@public_bp.get("/contact-messages")
@require_admin
def list_contact_messages_route():
    return contact_service.list_contact_messages(get_store())


@public_bp.get("/newsletter")
@require_admin
def list_subscriptions_route():
    return contact_service.list_subscriptions(get_store())
