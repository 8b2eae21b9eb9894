# backend/firebase_config.py

import logging
import firebase_admin
from firebase_admin import credentials, firestore

logger = logging.getLogger(__name__)


def initialize_firebase(config: dict) -> firebase_admin.App:
    """
    Initializes the Firebase Admin SDK once per process and returns the app.

    A service-account file is used when FIREBASE_CRED_PATH is set; otherwise the
    application default credentials of the runtime are used.
    """
    # Check if the app is already initialized to prevent errors on reload
    if firebase_admin._apps:
        logger.info("[Firebase] Admin SDK already initialized for project: %s", config["firebase_project_id"])
        return firebase_admin.get_app()

    cred_path = config.get("firebase_cred_path")
    if cred_path:
        cred = credentials.Certificate(cred_path)
        source = "service account file"
    else:
        cred = credentials.ApplicationDefault()
        source = "application default credentials"

    app = firebase_admin.initialize_app(cred, {"projectId": config["firebase_project_id"]})
    logger.info("[Firebase] Admin SDK initialized with %s for project: %s", source, config["firebase_project_id"])
    return app


def get_firestore_client(app: firebase_admin.App):
    """Returns a reference to the Firestore database client of the given app."""
    return firestore.client(app)
