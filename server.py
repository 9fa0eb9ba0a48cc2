# Deploy on Replit or Netlify-style hosts: set secrets and run 'uvicorn server:app --host=0.0.0.0 --port=8000'
import logging
import os

from office_tracker.api import create_app
from office_tracker.config import load_settings

logging.basicConfig(level=logging.INFO, handlers=[logging.StreamHandler()])

app = create_app(load_settings(os.getenv("OFFICE_TRACKER_ENV")))

__all__ = ["app"]
