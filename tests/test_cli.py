"""
Tests for the Command-Line Tools
================================

Covers smtable (build, codes, cycles) and smdisasm using click's test
runner, and the shared error reporting.

Run tests with:
    pytest tests/test_cli.py -v
"""

import json

import pytest
from click.testing import CliRunner

from conftest import make_entry
from sm83_optable.cli.errors import ExitCode, describe_error, handle_cli_exception
from sm83_optable.cli.smdisasm import main as smdisasm
from sm83_optable.cli.smdisasm import parse_number
from sm83_optable.cli.smtable import format_record
from sm83_optable.cli.smtable import main as smtable
from sm83_optable.config import CompletenessPolicy, ConfigError
from sm83_optable.errors import (
    DescriptionLoadError,
    IncompleteOpcodeSpace,
    MalformedInterruptVector,
    OpcodeLocation,
)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def partial_description(tmp_path):
    """Description file defining only two base opcodes."""
    path = tmp_path / "partial.json"
    path.write_text(json.dumps({
        "unprefixed": {
            "0x00": make_entry(),
            "0xC3": make_entry("JP", 3, (16,), [{"name": "a16", "bytes": 2, "immediate": True}]),
        },
        "cbprefixed": {},
    }), encoding="utf-8")
    return path


# =============================================================================
# smtable Tests
# =============================================================================

class TestSmtableCLI:
    """Tests for the smtable CLI tool."""

    def test_cli_help(self, runner):
        result = runner.invoke(smtable, ["--help"])
        assert result.exit_code == 0
        assert "Build and inspect SM83 opcode tables" in result.output

    def test_cli_version(self, runner):
        result = runner.invoke(smtable, ["--version"])
        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_build_bundled(self, runner):
        result = runner.invoke(smtable, ["build"])
        assert result.exit_code == 0
        assert "unprefixed: 256 opcodes" in result.output
        assert "cbprefixed: 256 opcodes" in result.output
        assert "conditional timings: 16" in result.output

    def test_build_output_file(self, runner, tmp_path):
        output = tmp_path / "optable.json"
        result = runner.invoke(smtable, ["build", "-o", str(output)])

        assert result.exit_code == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["unprefixed"]["0xCA"]["cycles"] == [12, 4]

    def test_build_total_cycles(self, runner, tmp_path):
        output = tmp_path / "optable.json"
        result = runner.invoke(smtable, ["--cycles", "total", "build", "-o", str(output)])

        assert result.exit_code == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["unprefixed"]["0xCA"]["cycles"] == [12, 16]

    def test_build_cycles_from_environment(self, runner, tmp_path):
        output = tmp_path / "optable.json"
        result = runner.invoke(
            smtable, ["build", "-o", str(output)], env={"SM83_OPTABLE_CYCLES": "total"}
        )

        assert result.exit_code == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["unprefixed"]["0xC4"]["cycles"] == [12, 24]

    def test_build_description_file(self, runner, tmp_path):
        from sm83_optable.isa import sm83_description

        path = tmp_path / "Opcodes.json"
        path.write_text(json.dumps(sm83_description()), encoding="utf-8")
        result = runner.invoke(smtable, ["build", str(path)])

        assert result.exit_code == 0
        assert "unprefixed: 256 opcodes" in result.output

    def test_build_incomplete_fails(self, runner, partial_description):
        result = runner.invoke(smtable, ["build", str(partial_description)])
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "Build error:" in result.output
        assert "254 code(s) missing" in result.output
        assert "--allow-incomplete" in result.output

    def test_build_incomplete_allowed(self, runner, partial_description):
        result = runner.invoke(smtable, ["--allow-incomplete", "build", str(partial_description)])
        assert result.exit_code == 0
        assert "unprefixed: 2 opcodes" in result.output
        assert "cbprefixed: 0 opcodes" in result.output

    def test_build_invalid_json(self, runner, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{", encoding="utf-8")
        result = runner.invoke(smtable, ["build", str(path)])
        assert result.exit_code == ExitCode.BUILD_ERROR
        assert "Cannot load description: invalid JSON" in result.output

    def test_build_missing_file(self, runner, tmp_path):
        result = runner.invoke(smtable, ["build", str(tmp_path / "missing.json")])
        assert result.exit_code == 2

    def test_build_bad_environment(self, runner):
        result = runner.invoke(smtable, ["build"], env={"SM83_OPTABLE_COMPLETENESS": "maybe"})
        assert result.exit_code == ExitCode.INVALID_ARGS
        assert "SM83_OPTABLE_COMPLETENESS='maybe' is not one of: fail, warn" in result.output

    def test_codes(self, runner):
        result = runner.invoke(smtable, ["codes"])
        assert result.exit_code == 0
        jp_line = next(line for line in result.output.splitlines() if line.startswith("JP "))
        assert jp_line.split()[1:] == ["0xC2", "0xC3", "0xCA", "0xD2", "0xDA", "0xE9"]

    def test_codes_prefixed(self, runner):
        result = runner.invoke(smtable, ["codes", "--prefixed"])
        assert result.exit_code == 0
        swap_line = next(line for line in result.output.splitlines() if line.startswith("SWAP"))
        assert "0x30" in swap_line
        assert "0x37" in swap_line

    def test_cycles(self, runner):
        result = runner.invoke(smtable, ["cycles"])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert len(lines) == 16
        ca_line = next(line for line in lines if "0xCA" in line)
        assert "JP Z,a16" in ca_line
        assert "base=12 extra=4 taken=16" in ca_line

    def test_cycles_total_convention(self, runner):
        """The taken-total layout reports the same costs."""
        result = runner.invoke(smtable, ["--cycles", "total", "cycles"])
        assert result.exit_code == 0
        c4_line = next(line for line in result.output.splitlines() if "0xC4" in line)
        assert "CALL NZ,a16" in c4_line
        assert "base=12 extra=12 taken=24" in c4_line

    def test_format_record(self):
        from sm83_optable.isa import sm83_table

        table = sm83_table()
        assert format_record(table.lookup(0x7C, prefixed=True)) == "CB 0x7C  BIT 7,H"
        assert format_record(table.lookup(0x00)) == "   0x00  NOP"
        assert format_record(table.lookup(0xDA)) == "   0xDA  JP C,a16"


# =============================================================================
# smdisasm Tests
# =============================================================================

class TestSmdisasmCLI:
    """Tests for the smdisasm CLI tool."""

    def test_cli_help(self, runner):
        result = runner.invoke(smdisasm, ["--help"])
        assert result.exit_code == 0
        assert "Disassemble SM83" in result.output

    def test_basic_disassembly(self, runner, tmp_path):
        rom = tmp_path / "entry.bin"
        rom.write_bytes(bytes([0x00, 0xC3, 0x50, 0x01]))

        result = runner.invoke(smdisasm, [str(rom), "--address", "0x0100"])

        assert result.exit_code == 0
        assert "; Disassembly of entry.bin" in result.output
        assert "; Base address: $0100" in result.output
        assert "$0100: 00" in result.output
        assert "JP $0150" in result.output

    def test_no_bytes(self, runner, tmp_path):
        rom = tmp_path / "loop.bin"
        rom.write_bytes(bytes([0x18, 0xFE]))

        result = runner.invoke(smdisasm, [str(rom), "--no-bytes", "-a", "$0200"])

        assert result.exit_code == 0
        assert "$0200: JR $0200  ; -2" in result.output

    def test_skip_and_count(self, runner, tmp_path):
        rom = tmp_path / "rom.bin"
        rom.write_bytes(bytes([0xFF, 0xFF, 0x00, 0x76, 0x00]))

        result = runner.invoke(smdisasm, [str(rom), "--skip", "2", "--count", "2", "--no-bytes"])

        assert result.exit_code == 0
        assert "NOP" in result.output
        assert "HALT" in result.output
        assert "RST" not in result.output
        assert "; Size: 3 bytes" in result.output

    def test_output_file(self, runner, tmp_path):
        rom = tmp_path / "rom.bin"
        rom.write_bytes(bytes([0xCB, 0x7C]))
        output = tmp_path / "rom.asm"

        result = runner.invoke(smdisasm, [str(rom), "-o", str(output)])

        assert result.exit_code == 0
        assert "BIT 7, H" in output.read_text(encoding="utf-8")

    def test_custom_table(self, runner, tmp_path, partial_description):
        rom = tmp_path / "rom.bin"
        rom.write_bytes(bytes([0x00, 0x42]))

        result = runner.invoke(smdisasm, [str(rom), "-t", str(partial_description)])

        assert result.exit_code == ExitCode.BUILD_ERROR

    def test_custom_table_incomplete_allowed(self, runner, tmp_path, partial_description):
        rom = tmp_path / "rom.bin"
        rom.write_bytes(bytes([0x00, 0x42]))

        result = runner.invoke(
            smdisasm, [str(rom), "-t", str(partial_description), "--allow-incomplete"]
        )

        assert result.exit_code == 0
        assert "NOP" in result.output
        assert ".BYTE $42" in result.output
        assert "unknown opcode" in result.output

    def test_empty_input(self, runner, tmp_path):
        rom = tmp_path / "empty.bin"
        rom.write_bytes(b"")

        result = runner.invoke(smdisasm, [str(rom)])
        assert result.exit_code == ExitCode.INVALID_ARGS

    @pytest.mark.parametrize("address", ["zz", "0x10000"])
    def test_invalid_address(self, runner, tmp_path, address):
        rom = tmp_path / "rom.bin"
        rom.write_bytes(b"\x00")

        result = runner.invoke(smdisasm, [str(rom), "--address", address])
        assert result.exit_code == ExitCode.INVALID_ARGS

    @pytest.mark.parametrize("text,value", [("0x100", 256), ("$FF", 255), ("42", 42)])
    def test_parse_number(self, text, value):
        assert parse_number(text) == value


# =============================================================================
# Error Reporting Tests
# =============================================================================

class TestErrorReporting:
    """Tests for describe_error() and handle_cli_exception()."""

    def test_table_error_keeps_location(self):
        error = MalformedInterruptVector("$G0").at(OpcodeLocation(0xC7), "operands[0].name")
        code, message = describe_error(error, "Build")
        assert code == ExitCode.BUILD_ERROR
        assert message.startswith("Build error: unprefixed 0xC7: operands[0].name: ")

    def test_table_error_without_type(self):
        code, message = describe_error(MalformedInterruptVector("$"))
        assert code == ExitCode.BUILD_ERROR
        assert message.startswith("Error: ")

    def test_incomplete_space_suggests_override(self):
        code, message = describe_error(IncompleteOpcodeSpace(True, [0x00, 0x01]), "Build")
        assert code == ExitCode.BUILD_ERROR
        assert "cbprefixed: 2 code(s) missing: 0x00, 0x01" in message
        assert message.endswith("SM83_OPTABLE_COMPLETENESS=warn")

    def test_load_error(self):
        code, message = describe_error(DescriptionLoadError("invalid JSON: x"), "Build")
        assert code == ExitCode.BUILD_ERROR
        assert message == "Cannot load description: invalid JSON: x"

    def test_config_error(self):
        error = ConfigError("SM83_OPTABLE_COMPLETENESS", "maybe", CompletenessPolicy)
        code, message = describe_error(error)
        assert code == ExitCode.INVALID_ARGS
        assert message == "Configuration error: SM83_OPTABLE_COMPLETENESS='maybe' is not one of: fail, warn"

    @pytest.mark.parametrize("error", [FileNotFoundError("gone.json"), PermissionError("locked")])
    def test_file_errors(self, error):
        assert describe_error(error)[0] == ExitCode.INVALID_ARGS

    def test_unexpected_error(self):
        code, message = describe_error(KeyError("mnemonic"))
        assert code == ExitCode.INTERNAL_ERROR
        assert message.startswith("Internal error: ")

    def test_handle_exits_with_code(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            handle_cli_exception(DescriptionLoadError("description must be a JSON object"))
        assert exc_info.value.code == ExitCode.BUILD_ERROR
        assert "Cannot load description" in capsys.readouterr().err

    def test_handle_verbose_traceback(self, capsys):
        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            with pytest.raises(SystemExit) as exc_info:
                handle_cli_exception(e, verbose=True)
        assert exc_info.value.code == ExitCode.INTERNAL_ERROR
        err = capsys.readouterr().err
        assert "Internal error: boom" in err
        assert "Traceback" in err
