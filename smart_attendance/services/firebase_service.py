"""
Firebase bootstrap
Initialises the firebase_admin app used for identity and Firestore storage
"""
import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials

FIREBASE_APP_NAME = 'smart-attendance'


def init_firebase_app(firebase_config=None, credentials_path='', logger=None) -> Optional[firebase_admin.App]:
    """
    Return an initialised firebase_admin App, or None when Firebase is not configured.

    A service-account JSON file wins; otherwise a config carrying ``projectId``
    falls back to application default credentials. Failures are logged and
    reported as None so the kiosk keeps running with local storage.
    """
    logger = logger or logging.getLogger(__name__)
    firebase_config = firebase_config or {}

    try:
        return firebase_admin.get_app(FIREBASE_APP_NAME)
    except ValueError:
        pass

    options = {}
    project_id = firebase_config.get('projectId')
    if project_id:
        options['projectId'] = project_id

    try:
        if credentials_path:
            cred = credentials.Certificate(credentials_path)
        elif project_id:
            cred = credentials.ApplicationDefault()
        else:
            logger.warning("[Firebase] Configuration not provided. Firebase services will not be initialized.")
            return None
        app = firebase_admin.initialize_app(cred, options=options or None, name=FIREBASE_APP_NAME)
    except (ValueError, IOError) as exc:
        logger.error("[Firebase] Error initializing Firebase app: %s", exc)
        return None

    logger.info("[Firebase] ✅ Initialized (project: %s)", project_id or 'from credentials')
    return app
