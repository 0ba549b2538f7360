# pylint: disable=missing-module-docstring,missing-function-docstring

from context.field import FieldContext, field_can_do_voice, voice_button_state
from orchestrator.enums.voice_mode import VoiceButtonMode


def _fc(locale="en_US", password=False, **kwargs):
    return FieldContext(field_is_password=password, locale=locale, **kwargs)


def test_locale_support_matches_full_locale_or_language():
    assert _fc("en_US").locale_supported
    assert _fc("en-GB").locale_supported
    assert _fc("EN_nz").locale_supported
    # language part "en" is supported
    assert _fc("en_IE").locale_supported
    assert not _fc("fr_FR").locale_supported
    assert not _fc("").locale_supported


def test_custom_supported_locales():
    fc = _fc("de_DE", supported_locales=frozenset({"de"}))

    assert fc.locale_supported
    assert not _fc("en_US", supported_locales=frozenset({"de"})).locale_supported


def test_password_fields_never_take_voice():
    assert field_can_do_voice(_fc())
    assert not field_can_do_voice(_fc(password=True))


def test_voice_button_state_rules():
    main = voice_button_state(_fc(), VoiceButtonMode.MAIN, True)
    assert main.enabled and main.on_primary

    secondary = voice_button_state(_fc(), VoiceButtonMode.SECONDARY, True)
    assert secondary.enabled and not secondary.on_primary

    assert not voice_button_state(_fc(), VoiceButtonMode.OFF, True).enabled
    assert not voice_button_state(_fc(), VoiceButtonMode.MAIN, False).enabled
    assert not voice_button_state(_fc(password=True), VoiceButtonMode.MAIN, True).enabled
    assert not voice_button_state(
        _fc(private_ime_options="nm"), VoiceButtonMode.MAIN, True
    ).enabled
