import pytest

from thrive_stream._config import (
    DEFAULT_FIELDS,
    ENV_DEBUG,
    ENV_DESCRIPTION_FIELD,
    ENV_STEPS_FIELD,
    ENV_TITLE_FIELD,
    FieldNames,
    debug_enabled,
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in (ENV_DEBUG, ENV_TITLE_FIELD, ENV_DESCRIPTION_FIELD, ENV_STEPS_FIELD):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_default_field_names():
    assert DEFAULT_FIELDS == FieldNames(title="routineTitle", description="routineDescription", steps="steps")


def test_from_env_without_overrides(clean_env):
    assert FieldNames.from_env() == DEFAULT_FIELDS


def test_from_env_applies_overrides(clean_env):
    # Solo se sobrescriben las claves definidas en el entorno.
    clean_env.setenv(ENV_TITLE_FIELD, " title ")
    clean_env.setenv(ENV_STEPS_FIELD, "actionItems")

    fields = FieldNames.from_env()

    assert fields == FieldNames(title="title", description="routineDescription", steps="actionItems")


def test_from_env_rejects_blank_override(clean_env):
    clean_env.setenv(ENV_DESCRIPTION_FIELD, "  ")

    with pytest.raises(ValueError) as exc:
        FieldNames.from_env()

    assert ENV_DESCRIPTION_FIELD in str(exc.value)


@pytest.mark.parametrize("value", ["1", "true", "YES", "On"])
def test_debug_enabled_truthy(clean_env, value):
    clean_env.setenv(ENV_DEBUG, value)

    assert debug_enabled() is True


@pytest.mark.parametrize("value", ["", "0", "false", "off", "debug"])
def test_debug_enabled_falsy(clean_env, value):
    clean_env.setenv(ENV_DEBUG, value)

    assert debug_enabled() is False


def test_debug_disabled_when_unset(clean_env):
    assert debug_enabled() is False
