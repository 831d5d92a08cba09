import logging
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parent.parent / "src"))
from wcgeom.errors import TuningError
from wcgeom.tuning import TuningMessenger, TuningParameters
from wcgeom.tuning.messenger import COMMANDS, parse_bool


def test_defaults():
    params = TuningParameters()
    assert params.rayff == 0.75
    assert params.bsrff == 2.50
    assert params.abwff == 1.30
    assert params.rgcff == 0.32
    assert params.mieff == 0.0
    assert params.pmt_surf_type == 0
    assert params.cathode_para == 0
    assert params.tv_spacing == 100.0
    assert params.top_veto is False


def test_every_command_has_a_setter():
    params = TuningParameters()
    for command in COMMANDS:
        assert callable(getattr(params, command.setter))
        assert command.path.startswith("/WCSim/tuning/")


def test_apply_sets_value_and_logs(caplog):
    messenger = TuningMessenger()
    with caplog.at_level(logging.INFO):
        messenger.apply("/WCSim/tuning/rayff 0.8")
        messenger.apply("/WCSim/tuning/topveto true")
        messenger.apply("/WCSim/tuning/tvspacing 50")
    assert messenger.parameters.rayff == pytest.approx(0.8)
    assert messenger.parameters.top_veto is True
    assert messenger.parameters.tv_spacing == pytest.approx(50.0)
    assert "Setting Rayleigh scattering parameter 0.800000" in caplog.text
    assert "Setting Top Veto On" in caplog.text
    assert "Setting Top Veto PMT Spacing 50.000000" in caplog.text


def test_missing_value_applies_default():
    messenger = TuningMessenger(TuningParameters(bsrff=1.0))
    messenger.apply("/WCSim/tuning/bsrff")
    assert messenger.parameters.bsrff == pytest.approx(2.50)


def test_bare_command_name():
    messenger = TuningMessenger()
    messenger.set_new_value("abwff", "1.1")
    messenger.set_new_value("mieff", 0.5)
    assert messenger.parameters.abwff == pytest.approx(1.1)
    assert messenger.parameters.mieff == pytest.approx(0.5)


@pytest.mark.parametrize("text, expected", [("1", True), ("on", True), ("False", False), ("n", False)])
def test_parse_bool(text, expected):
    assert parse_bool(text) is expected


@pytest.mark.parametrize(
    "line",
    [
        "/WCSim/tuning/unknown 1",
        "/WCSim/tuning/rayff abc",
        "/WCSim/tuning/topveto maybe",
        "/WCSim/tuning/pmtsurftype 3",
        "/WCSim/tuning/cathodepara 5",
        "/WCSim/tuning/tvspacing 0",
        "/WCSim/tuning/rayff 0.8 0.9",
        "",
    ],
)
def test_rejected_commands(line):
    with pytest.raises(TuningError):
        TuningMessenger().apply(line)


def test_rejected_value_leaves_parameters_unchanged():
    messenger = TuningMessenger()
    with pytest.raises(TuningError):
        messenger.apply("/WCSim/tuning/pmtsurftype 2")
    assert messenger.parameters.pmt_surf_type == 0


def test_apply_macro(tmp_path, caplog):
    macro = tmp_path / "tuning.mac"
    macro.write_text(
        "# optical tuning\n"
        "/run/verbose 1\n"
        "/WCSim/tuning/rgcff 0.25\n"
        "\n"
        "/WCSim/tuning/pmtsurftype 1   # thin film\n"
        "/WCSim/tuning/cathodepara 2\n"
    )
    messenger = TuningMessenger()
    with caplog.at_level(logging.INFO):
        applied = messenger.apply_macro(macro)
    assert applied == 3
    assert messenger.parameters.rgcff == pytest.approx(0.25)
    assert messenger.parameters.pmt_surf_type == 1
    assert messenger.parameters.cathode_para == 2
    assert f"Applied 3 tuning command(s) from {macro}" in caplog.text


def test_macro_error_names_line(tmp_path):
    macro = tmp_path / "bad.mac"
    macro.write_text("/WCSim/tuning/rayff 0.8\n/WCSim/tuning/abwff lots\n")
    with pytest.raises(TuningError, match=r"bad\.mac:2"):
        TuningMessenger().apply_macro(macro)


def test_guidance_lists_every_command():
    lines = TuningMessenger().guidance()
    assert len(lines) == len(COMMANDS) + 1
    assert any(line.startswith("/WCSim/tuning/topveto (bool") for line in lines)


def test_top_veto_setter_parses_strings():
    params = TuningParameters(top_veto=True)
    params.set_top_veto("false")
    assert params.top_veto is False
    params.set_top_veto("On")
    assert params.top_veto is True
    params.set_top_veto(0)
    assert params.top_veto is False
    with pytest.raises(TuningError):
        params.set_top_veto("sometimes")
