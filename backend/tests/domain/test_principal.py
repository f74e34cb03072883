import pytest
from esports_hub.domain.errors import ErrorCode, UnauthenticatedError
from esports_hub.domain.principal import Principal, resolve_principal


def test_resolve_principal_returns_given_principal() -> None:
    principal = Principal(id="u-1", first_name="Ada", last_name="Lovelace")
    assert resolve_principal(principal) is principal
    assert principal.display_name == "Ada Lovelace"


def test_display_name_falls_back_to_id() -> None:
    assert Principal(id="u-2").display_name == "u-2"


def test_missing_principal_raises_with_action() -> None:
    with pytest.raises(UnauthenticatedError) as excinfo:
        resolve_principal(None, action="create a team")
    assert excinfo.value.message == "You must be logged in to create a team"
    assert excinfo.value.code == ErrorCode.UNAUTHENTICATED


def test_blank_principal_id_is_rejected() -> None:
    with pytest.raises(UnauthenticatedError):
        resolve_principal(Principal(id=""))
