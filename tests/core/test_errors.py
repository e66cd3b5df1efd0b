"""Error hierarchy — HTTP status and response envelope per error type."""

import pytest

from fellowship.core.errors import (
    ConflictError, DatabaseError, ErrorContext, FellowshipError,
    ForbiddenUsernameError, IdentityRequiredError, PermissionDeniedError,
    ResourceNotFoundError, ValidationFailedError,
)


@pytest.mark.parametrize("error,status,code", [
    (PermissionDeniedError("no", "NOT_OWNER"), 403, "PERMISSION_DENIED"),
    (ValidationFailedError("bad", "text"), 400, "VALIDATION_FAILED"),
    (ForbiddenUsernameError("orcboss"), 400, "FORBIDDEN_USERNAME"),
    (ResourceNotFoundError("pins", "x"), 404, "RESOURCE_NOT_FOUND"),
    (IdentityRequiredError("who?"), 401, "IDENTITY_REQUIRED"),
    (ConflictError("dup"), 409, "CONFLICT"),
    (DatabaseError("down", "execute"), 503, "DATABASE_ERROR"),
])
def test_status_and_code(error, status, code):
    assert isinstance(error, FellowshipError)
    assert error.http_status == status
    assert error.to_response()["error"]["code"] == code


def test_permission_denied_response_carries_deny_code():
    error = PermissionDeniedError(
        "nope", "NOT_OWNER", ErrorContext(entity_kind="pins", operation="delete"),
    )
    body = error.to_response()["error"]
    assert body["deny_code"] == "NOT_OWNER"
    assert body["context"]["entity_kind"] == "pins"


def test_validation_response_names_the_field():
    assert ValidationFailedError("too long", "text").to_response()["error"]["field"] == "text"


def test_user_message_overrides_message():
    error = ConflictError("internal detail", ErrorContext(user_message="Already liked."))
    assert error.to_response()["error"]["message"] == "Already liked."
