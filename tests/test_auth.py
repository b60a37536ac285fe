import pytest
from fastapi import HTTPException

from course_rag.auth.security import admin_token_from, verify_admin
from course_rag.config import Settings


@pytest.fixture
def config():
    return Settings(admin_token="  s3cret  ")


@pytest.mark.parametrize(
    "authorization, x_admin_token, expected",
    [
        ("Bearer abc", None, "abc"),
        ("bearer   abc  ", None, "abc"),
        (None, " abc ", "abc"),
        ("Bearer abc", "other", "abc"),
        ("Basic abc", "other", "other"),
        ("Basic abc", None, ""),
        (None, None, ""),
    ],
)
def test_admin_token_from(authorization, x_admin_token, expected):
    assert admin_token_from(authorization, x_admin_token) == expected


async def test_bearer_token_accepted(config):
    assert await verify_admin("Bearer s3cret", None, config) is None


async def test_header_token_accepted(config):
    assert await verify_admin(None, "s3cret", config) is None


@pytest.mark.parametrize(
    "authorization, x_admin_token",
    [
        (None, None),
        ("Bearer wrong", None),
        (None, "wrong"),
        ("Bearer ", ""),
        (None, "s3crét"),
    ],
)
async def test_rejected_tokens(config, authorization, x_admin_token):
    with pytest.raises(HTTPException) as excinfo:
        await verify_admin(authorization, x_admin_token, config)

    assert excinfo.value.status_code == 401
    assert excinfo.value.detail == "unauthorized"


async def test_unconfigured_token_rejects_everything():
    config = Settings(admin_token="")

    with pytest.raises(HTTPException) as excinfo:
        await verify_admin(None, "", config)

    assert excinfo.value.status_code == 401
