import dataclasses

import pytest

from StatelessSession.errors import ConfigurationError
from StatelessSession.session_config import (
    DEFAULT_COOKIE_MAX_AGE,
    CookieOptions,
    build_options,
    get_bool,
    get_int,
    options_from_env,
)
from tests.conftest import SECRET


def _extract(request):
    return None


def test_defaults():
    options = build_options(get_session_id=_extract, secret=SECRET)
    assert options.expires_in == 0
    assert options.custom_header is None
    assert options.cookie == CookieOptions(
        name="sk-stateless-session",
        max_age=DEFAULT_COOKIE_MAX_AGE,
        path="/",
        secure=False,
        http_only=True,
        same_site="lax",
        domain=None,
    )
    assert DEFAULT_COOKIE_MAX_AGE == 60 * 60 * 24 * 7


def test_max_age_follows_expiry_in_seconds():
    assert build_options(get_session_id=_extract, secret=SECRET, expires_in=3_600_000).cookie.max_age == 3600
    assert build_options(get_session_id=_extract, secret=SECRET, expires_in=1500).cookie.max_age == 2
    assert build_options(get_session_id=_extract, secret=SECRET, expires_in=1).cookie.max_age == 1


def test_explicit_cookie_options_win():
    options = build_options(
        get_session_id=_extract,
        secret=SECRET,
        expires_in=10_000,
        cookie={"name": "sid", "max_age": 99, "secure": True, "domain": "example.com"},
    )
    assert options.cookie.name == "sid"
    assert options.cookie.max_age == 99
    assert options.cookie.secure is True
    assert options.cookie.domain == "example.com"
    assert options.cookie.path == "/"


def test_cookie_options_instance_is_accepted():
    cookie = CookieOptions(name="sid", max_age=10, secure=True)
    assert build_options(get_session_id=_extract, secret=SECRET, cookie=cookie).cookie == cookie


def test_cookie_options_instance_gets_derived_defaults(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    options = build_options(
        get_session_id=_extract,
        secret=SECRET,
        expires_in=3_600_000,
        cookie=CookieOptions(name="sid"),
    )
    assert options.cookie.name == "sid"
    assert options.cookie.secure is True
    assert options.cookie.max_age == 3600


def test_cookie_options_instance_keeps_explicit_insecure_cookie(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    cookie = CookieOptions(name="sid", secure=False)
    assert build_options(get_session_id=_extract, secret=SECRET, cookie=cookie).cookie.secure is False


def test_secure_defaults_to_production(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    assert build_options(get_session_id=_extract, secret=SECRET).cookie.secure is True
    monkeypatch.setenv("APP_ENV", "development")
    assert build_options(get_session_id=_extract, secret=SECRET).cookie.secure is False


def test_false_custom_header_means_cookie():
    assert build_options(get_session_id=_extract, secret=SECRET, custom_header="").custom_header is None
    assert build_options(get_session_id=_extract, secret=SECRET, custom_header=False).custom_header is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"secret": SECRET},
        {"get_session_id": "not-callable", "secret": SECRET},
        {"get_session_id": _extract},
        {"get_session_id": _extract, "secret": ""},
        {"get_session_id": _extract, "secret": "short"},
        {"get_session_id": _extract, "secret": SECRET, "expires_in": -1},
        {"get_session_id": _extract, "secret": SECRET, "expires_in": 1.5},
        {"get_session_id": _extract, "secret": SECRET, "cookie": {"max_age": 0}},
        {"get_session_id": _extract, "secret": SECRET, "cookie": {"max_age": -5}},
        {"get_session_id": _extract, "secret": SECRET, "cookie": {"name": ""}},
        {"get_session_id": _extract, "secret": SECRET, "cookie": {"same_site": "sometimes"}},
        {"get_session_id": _extract, "secret": SECRET, "cookie": {"maxAge": 10}},
    ],
)
def test_invalid_options(kwargs):
    with pytest.raises(ConfigurationError):
        build_options(**kwargs)


def test_options_are_immutable():
    options = build_options(get_session_id=_extract, secret=SECRET)
    with pytest.raises(dataclasses.FrozenInstanceError):
        options.secret = "x" * 40
    with pytest.raises(dataclasses.FrozenInstanceError):
        options.cookie.max_age = 0


def test_secret_is_not_in_repr():
    assert SECRET not in repr(build_options(get_session_id=_extract, secret=SECRET))


def test_env_helpers(monkeypatch):
    monkeypatch.setenv("FLAG", "TRUE")
    monkeypatch.setenv("NUMBER", "12")
    monkeypatch.setenv("BROKEN", "twelve")
    assert get_bool("FLAG") is True
    assert get_bool("MISSING_FLAG", True) is True
    assert get_int("NUMBER", 0) == 12
    assert get_int("BROKEN", 3) == 3


def test_options_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("SESSION_SECRET_KEY", SECRET)
    monkeypatch.setenv("SESSION_EXPIRES_IN", "120000")
    monkeypatch.setenv("SESSION_COOKIE_NAME", "app-session")
    monkeypatch.setenv("SESSION_COOKIE_SAMESITE", "Strict")
    monkeypatch.setenv("SESSION_COOKIE_SECURE", "true")
    options = options_from_env(env_path=str(tmp_path / "missing.env"))
    assert options.secret == SECRET
    assert options.expires_in == 120_000
    assert options.cookie.name == "app-session"
    assert options.cookie.max_age == 120
    assert options.cookie.same_site == "strict"
    assert options.cookie.secure is True
    assert callable(options.get_session_id)


def test_options_from_env_requires_secret(monkeypatch, tmp_path):
    monkeypatch.delenv("SESSION_SECRET_KEY", raising=False)
    with pytest.raises(ConfigurationError):
        options_from_env(env_path=str(tmp_path / "missing.env"))


def test_options_from_env_reads_dotenv_file(monkeypatch, tmp_path):
    # Register the variables so values loaded from the file are undone after the test.
    for name in ("SESSION_SECRET_KEY", "SESSION_CUSTOM_HEADER"):
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)
    env_file = tmp_path / ".env"
    env_file.write_text(f'SESSION_SECRET_KEY="{SECRET}"\nSESSION_CUSTOM_HEADER=X-Session\n', encoding="utf-8")

    options = options_from_env(env_path=str(env_file))
    assert options.secret == SECRET
    assert options.custom_header == "X-Session"
