import logging
import os
import uuid
from typing import Optional

import firebase_admin
from firebase_admin import credentials, firestore

from membership_admin.errors import CredentialsError

logger = logging.getLogger("membership_admin.firebase")


class MockDocumentSnapshot:
    def __init__(self, collection, id, data=None, exists=True):
        self.collection = collection
        self.id = id
        self._data = data or {}
        self._exists = exists

    @property
    def exists(self):
        return self._exists

    @property
    def reference(self):
        return self.collection.document(self.id)

    def to_dict(self):
        if not self._exists:
            return None
        return dict(self._data)


class MockDocumentReference:
    def __init__(self, collection, id):
        self.collection = collection
        self.id = id or "mock_id"

    def get(self):
        data = self.collection._docs.get(self.id)
        return MockDocumentSnapshot(self.collection, self.id, data=data, exists=data is not None)

    def set(self, data, merge=False):
        if merge and self.id in self.collection._docs:
            merged = dict(self.collection._docs[self.id])
            merged.update(data)
            self.collection._docs[self.id] = merged
        else:
            self.collection._docs[self.id] = dict(data)
        logger.debug("[MockDB] Set %s: %s", self.id, data)

    def delete(self):
        self.collection._docs.pop(self.id, None)
        logger.debug("[MockDB] Delete %s", self.id)


class MockQuery:
    def __init__(self, collection, filters=None):
        self.collection = collection
        self._filters = filters or []

    def where(self, field_path=None, op_string=None, value=None, *, filter=None):
        if filter is not None:
            field_path, op_string, value = filter.field_path, filter.op_string, filter.value
        # Only equality is needed by the maintenance jobs.
        if op_string != "==":
            raise NotImplementedError(f"MockQuery does not support {op_string!r}")
        return MockQuery(self.collection, self._filters + [(field_path, value)])

    def stream(self):
        for doc_id, data in list(self.collection._docs.items()):
            if all(field in data and data[field] == value for field, value in self._filters):
                yield MockDocumentSnapshot(self.collection, doc_id, data=data, exists=True)

    def get(self):
        return list(self.stream())


class MockCollectionReference(MockQuery):
    def __init__(self, name):
        super().__init__(self)
        self.name = name
        self._docs = {}  # id -> data

    def document(self, doc_id=None):
        return MockDocumentReference(self, doc_id or uuid.uuid4().hex)


class MockFirestoreClient:
    """Dict-backed stand-in for the Firestore client (USE_MOCK_DB=1)."""

    def __init__(self):
        self._collections = {}

    def collection(self, name):
        if name not in self._collections:
            self._collections[name] = MockCollectionReference(name)
        return self._collections[name]


class FirebaseHandle:
    """Caller-owned Firebase app plus the Firestore client bound to it.

    Use as a context manager, or call close() when done; closing deletes the
    underlying firebase_admin app so repeated runs in one process stay isolated.
    """

    def __init__(self, app, db):
        self.app = app
        self.db = db

    def close(self) -> None:
        if self.app is not None:
            firebase_admin.delete_app(self.app)
            self.app = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def resolve_credentials_path(service_account_path: Optional[str]) -> Optional[str]:
    """Explicit path wins, then GOOGLE_APPLICATION_CREDENTIALS."""
    return service_account_path or os.environ.get("GOOGLE_APPLICATION_CREDENTIALS") or None


def connect(
    service_account_path: Optional[str] = None,
    *,
    require_credentials: bool = False,
    env_fallback: bool = True,
    app_name: Optional[str] = None,
) -> FirebaseHandle:
    """Build a Firebase handle, validating credentials before any network call.

    With require_credentials=False and no path, Application Default Credentials
    are used (Cloud Shell, gcloud auth application-default login).
    env_fallback=False leaves GOOGLE_APPLICATION_CREDENTIALS to ADC itself, which
    also accepts authorized_user files.
    """
    if os.environ.get("USE_MOCK_DB", "0") == "1":
        logger.warning("!!! USING MOCK DB !!!")
        return FirebaseHandle(app=None, db=MockFirestoreClient())

    path = resolve_credentials_path(service_account_path) if env_fallback else service_account_path
    if require_credentials and not path:
        raise CredentialsError(
            "Provide --serviceAccount=path or set GOOGLE_APPLICATION_CREDENTIALS env var"
        )

    cred = None
    if path:
        if not os.path.isfile(path):
            raise CredentialsError(f"serviceAccount file not found: {path}")
        try:
            cred = credentials.Certificate(path)
        except (ValueError, OSError) as e:
            raise CredentialsError(f"Invalid service account file {path}: {e}") from e

    app_options = {}
    project_id = os.environ.get("GOOGLE_CLOUD_PROJECT")
    if project_id:
        app_options["projectId"] = project_id

    app = firebase_admin.initialize_app(
        cred,
        options=app_options or None,
        name=app_name or f"membership-admin-{uuid.uuid4().hex[:8]}",
    )
    try:
        db = firestore.client(app=app)
    except Exception:
        firebase_admin.delete_app(app)
        raise
    logger.info("Firebase initialized (project=%s)", app.project_id)
    return FirebaseHandle(app=app, db=db)
