"""
Error taxonomy tests
"""

import pytest

from midilink.midi.errors import (
    ContractViolation,
    ErrorKind,
    MidiError,
    PmError,
    check_status,
    error_text,
)


def test_every_native_code_has_a_kind():
    for code in PmError:
        kind = ErrorKind.from_status(code)
        assert kind.status == code


def test_from_status_accepts_plain_ints():
    assert ErrorKind.from_status(-9996) == ErrorKind.BUFFER_OVERFLOW
    assert ErrorKind.from_status(1) == ErrorKind.GOT_DATA


@pytest.mark.parametrize("status", [-1, 2, -9991, -10001, 12345])
def test_unknown_status_is_a_contract_violation(status):
    with pytest.raises(ContractViolation):
        ErrorKind.from_status(status)


def test_package_kinds_have_no_native_code():
    for kind in (ErrorKind.NO_DEFAULT_DEVICE, ErrorKind.NOT_AN_INPUT_DEVICE,
                 ErrorKind.NOT_AN_OUTPUT_DEVICE, ErrorKind.INVALID):
        assert kind.status is None
        assert kind.is_error


def test_check_status_passes_success_codes():
    assert check_status(PmError.NO_ERROR) == ErrorKind.NO_ERROR
    assert check_status(PmError.GOT_DATA) == ErrorKind.GOT_DATA


def test_check_status_raises_midi_error():
    with pytest.raises(MidiError) as exc_info:
        check_status(PmError.BAD_DATA)
    assert exc_info.value.kind == ErrorKind.BAD_DATA
    assert str(exc_info.value) == "Invalid MIDI message data"


def test_contract_violation_is_not_a_midi_error():
    assert not issubclass(ContractViolation, MidiError)
    with pytest.raises(ContractViolation):
        check_status(-5)


def test_every_kind_has_text():
    for kind in ErrorKind:
        assert error_text(kind)


def test_host_text_is_appended():
    error = MidiError(ErrorKind.HOST_ERROR, "ALSA: device busy")
    assert error.host_text == "ALSA: device busy"
    assert str(error) == "Host error: ALSA: device busy"
    assert repr(error) == "MidiError(HOST_ERROR)"
