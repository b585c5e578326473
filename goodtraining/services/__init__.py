"""
Services package for the goodtraining web app.

Page-level display logic that sits between the backend repositories and the
templates.
"""

from goodtraining.services.article_listing import build_listing
from goodtraining.services.supervisor_cards import build_card, build_cards

__all__ = ["build_card", "build_cards", "build_listing"]
