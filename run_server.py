#!/usr/bin/env python3
"""
Terraform PR Reviewer Server

Runs the Flask server receiving preference submissions and GitHub webhooks.
"""

import sys
import logging
from pathlib import Path

# Add src directory to Python path
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))

from tf_pr_reviewer.config import get_config
from tf_pr_reviewer.server import create_app


logger = logging.getLogger(__name__)


if __name__ == '__main__':
    config = get_config()
    app = create_app()

    logger.info(f"Starting Terraform PR Reviewer on http://{config.server.host}:{config.server.port}")
    logger.info("Endpoints: GET /api/v1/health, POST /api/webhook")

    try:
        app.run(
            host=config.server.host,
            port=config.server.port,
            debug=config.debug
        )
    finally:
        app.config['REVIEWER_API'].cleanup_resources(wait=False)
