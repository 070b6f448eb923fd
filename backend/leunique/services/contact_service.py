# Overview: Public contact form and newsletter sign-ups.

from __future__ import annotations

import logging

from ..validation import ConflictError

logger = logging.getLogger(__name__)


def submit_contact_message(store, patch: dict) -> dict:
    """
    Store a contact form submission.

    With newsletter_opt_in the sender is also subscribed. An address that is
    already subscribed is left as is; the form still succeeds.
    """
    message = store.create_contact_message(patch)

    if message.newsletter_opt_in:
        try:
            store.add_newsletter_subscription({
                "name": message.name,
                "email": message.email,
                "phone": message.phone,
            })
        except ConflictError:
            logger.info("Contact %s opted in with an already subscribed email", message.id)

    return message.to_dict()


def subscribe(store, patch: dict) -> dict:
    """Raises ConflictError when the email is already subscribed."""
    return store.add_newsletter_subscription(patch).to_dict()


def list_contact_messages(store) -> dict:
    messages = store.list_contact_messages()
    return {"messages": [m.to_dict() for m in messages], "count": len(messages)}


def list_subscriptions(store) -> dict:
    subscriptions = store.list_newsletter_subscriptions()
    return {"subscriptions": [s.to_dict() for s in subscriptions], "count": len(subscriptions)}
