from unittest.mock import MagicMock, patch

import pytest

from membership_admin.firebase import FirebaseHandle, MockFirestoreClient


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("GOOGLE_APPLICATION_CREDENTIALS", "USE_MOCK_DB", "MEMBERSHIPS_COLLECTION", "GOOGLE_CLOUD_PROJECT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def mock_db():
    return MockFirestoreClient()


@pytest.fixture
def seed(mock_db):
    def _seed(docs, collection="memberships"):
        col = mock_db.collection(collection)
        for doc_id, data in docs.items():
            col.document(doc_id).set(data)
        return col
    return _seed


def make_user_pages(uids, page_size):
    """Split uids into list_users pages keyed by the page token that fetches them."""
    pages = {}
    chunks = [uids[i:i + page_size] for i in range(0, len(uids), page_size)] or [[]]
    token = None
    for idx, chunk in enumerate(chunks):
        next_token = f"token-{idx + 1}" if idx + 1 < len(chunks) else ""
        page = MagicMock()
        page.users = [MagicMock(uid=uid) for uid in chunk]
        page.next_page_token = next_token
        pages[token] = page
        token = next_token
    return pages


@pytest.fixture
def auth_users():
    """Patch firebase_admin.auth.list_users with a paginated fake."""
    patchers = []

    def _install(uids, page_size=1000):
        pages = make_user_pages(list(uids), page_size)

        def list_users(max_results=1000, page_token=None, app=None):
            return pages[page_token]

        p = patch("membership_admin.services.identity.auth.list_users", side_effect=list_users)
        mocked = p.start()
        patchers.append(p)
        return mocked

    yield _install
    for p in patchers:
        p.stop()


@pytest.fixture
def mock_handle(mock_db):
    return FirebaseHandle(app=None, db=mock_db)
