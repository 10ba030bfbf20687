import pytest

from thinkboard.core.modules.note.store import ShareTokenCollision
from thinkboard.errors import (
    AccessDeniedError,
    AuthenticationError,
    ConflictError,
    ExpiredError,
    NotFoundOrForbidden,
    StorageUnavailable,
    UserError,
    ValidationError,
    VersionNotFound,
)
from thinkboard.web.error_handlers import classify_error


class OtherError(UserError):
    pass


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (AuthenticationError(), (401, "authentication_error")),
        (AccessDeniedError("no"), (403, "access_denied")),
        (NotFoundOrForbidden(), (404, "not_found")),
        (VersionNotFound(), (404, "not_found")),
        (ValidationError("bad", field="title"), (400, "validation_error")),
        (ConflictError(), (409, "conflict")),
        (ShareTokenCollision(), (409, "conflict")),
        (ExpiredError(), (410, "expired")),
        (StorageUnavailable(), (503, "storage_unavailable")),
        (OtherError("odd"), (400, "bad_request")),
    ],
)
def test_classify_error(exc, expected):
    assert classify_error(exc) == expected
