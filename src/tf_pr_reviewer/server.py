"""
HTTP Server

Flask application exposing the single inbound endpoint used both by the
preferences form (JSON body) and by GitHub webhook deliveries.
"""

import logging
from typing import Optional

from flask import Flask, request, jsonify
from flask_cors import CORS
from pydantic import ValidationError

from . import __version__
from .api import ReviewerAPI
from .github.webhook import WebhookEvent, WebhookVerificationError
from .models.preferences import PreferencesRequest
from .models.pull_request import WebhookPayloadError
from .storage.preferences import PreferenceStoreError


logger = logging.getLogger(__name__)


def create_app(reviewer_api: Optional[ReviewerAPI] = None) -> Flask:
    """
    Create the Flask application.

    Args:
        reviewer_api: Optional pre-built API; built from configuration otherwise

    Returns:
        Configured Flask app
    """
    app = Flask(__name__)
    CORS(app)  # Preferences form may be served from another origin

    api = reviewer_api or ReviewerAPI()
    app.config['REVIEWER_API'] = api

    @app.route('/api/v1/health', methods=['GET'])
    def health_check():
        """Health check endpoint."""
        health = api.get_system_health()
        return jsonify({
            'status': health['status'],
            'service': 'tf-pr-reviewer',
            'version': __version__,
            'components': health['components']
        })

    @app.route('/api/webhook', methods=['POST'])
    def webhook():
        """Save preferences (JSON form submissions) or receive a GitHub delivery."""
        content_type = request.headers.get('Content-Type', '')
        is_delivery = 'X-GitHub-Event' in request.headers

        if not is_delivery and 'application/json' in content_type:
            return _save_preferences(api)
        return _receive_webhook(api)

    return app


def _save_preferences(api: ReviewerAPI):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Invalid JSON body'}), 400

    try:
        body = PreferencesRequest(**data)
    except ValidationError as e:
        logger.warning(f"Invalid preferences request: {e}")
        return jsonify({'error': 'Invalid preferences'}), 400

    if not body.repo:
        return jsonify({'error': 'Missing repo'}), 400

    try:
        api.save_preferences(body.repo, body.priorities)
    except PreferenceStoreError as e:
        logger.error(f"Failed to save preferences for {body.repo}: {e}")
        return jsonify({'error': 'Failed to save preferences'}), 500

    return jsonify({'ok': True})


def _receive_webhook(api: ReviewerAPI):
    event = WebhookEvent(
        id=request.headers.get('X-GitHub-Delivery', ''),
        name=request.headers.get('X-GitHub-Event', ''),
        raw_body=request.get_data(),
        signature=request.headers.get('X-Hub-Signature-256', ''),
        content_type=request.headers.get('Content-Type', ''),
    )

    try:
        api.receive_webhook(event)
    except (WebhookVerificationError, WebhookPayloadError) as e:
        logger.error(f"Webhook error: {e}")
        return jsonify({'ok': False, 'error': 'Invalid webhook'}), 400
    except RuntimeError as e:
        # Raised by the review queue once it has been shut down
        logger.error(f"Failed to queue review for delivery {event.id}: {e}")
        return jsonify({'ok': False, 'error': 'Failed to process webhook'}), 500

    return jsonify({'ok': True})
