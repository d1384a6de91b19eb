"""
Routes module for the fuel receiver Flask blueprints.
"""

from .readings import readings_bp

__all__ = [
    "readings_bp",
]


def register_blueprints(app):
    """Register all blueprints with the Flask app."""
    app.register_blueprint(readings_bp, url_prefix="/api")
