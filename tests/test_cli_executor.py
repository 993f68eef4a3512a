"""Tests for CLI field script executor."""

import builtins

import pytest

from strata_field import BatchConfig, InvalidConfig, LensCorrection, LinearArray
from strata_field.cli.executor import (
    RestrictedImportError,
    execute_field_script,
    script_settings,
    validate_field_object,
)


def test_execute_valid_script(tmp_path):
    """Test executing a valid field script."""
    script_content = """
from strata_field import LinearArray

field = LinearArray(num_elements=4)
test_value = 42
"""
    script_path = tmp_path / "field.py"
    script_path.write_text(script_content)

    namespace = execute_field_script(script_path, script_content)

    assert isinstance(namespace["field"], LinearArray)
    assert namespace["test_value"] == 42


def test_execute_script_with_numpy(tmp_path):
    """Test that numpy imports are allowed."""
    script_content = """
import numpy as np

result = np.array([1, 2, 3]).sum()
"""
    script_path = tmp_path / "numpy_script.py"

    namespace = execute_field_script(script_path, script_content)

    assert namespace["result"] == 6


def test_execute_script_restricted_import(tmp_path):
    """Test that restricted imports are blocked."""
    script_content = """
import os  # Not allowed!

files = os.listdir('.')
"""
    script_path = tmp_path / "bad.py"

    with pytest.raises(RestrictedImportError) as exc_info:
        execute_field_script(script_path, script_content)

    assert "os" in str(exc_info.value)


def test_restriction_does_not_leak(tmp_path):
    """Host-process imports still work after a script was sandboxed."""
    original = builtins.__import__
    execute_field_script(tmp_path / "s.py", "x = 1\n")

    assert builtins.__import__ is original
    import json  # noqa: F401


def test_execute_script_syntax_error(tmp_path):
    """Test that syntax errors are propagated."""
    with pytest.raises(SyntaxError):
        execute_field_script(tmp_path / "broken.py", "this is not valid python syntax!\n")


def test_validate_field_valid():
    field = LinearArray(num_elements=4)
    assert validate_field_object({"field": field}) is field


def test_validate_field_missing():
    with pytest.raises(ValueError) as exc_info:
        validate_field_object({"other_var": 42})

    assert "must define a 'field'" in str(exc_info.value)


def test_validate_field_invalid():
    with pytest.raises(ValueError) as exc_info:
        validate_field_object({"field": "not a field"})

    assert "missing required methods" in str(exc_info.value)


class TestScriptSettings:
    def test_defaults(self):
        correction, config = script_settings({})
        assert correction == LensCorrection()
        assert config == BatchConfig()

    def test_script_values(self):
        correction, config = script_settings({
            "correction": LensCorrection.along_z(-1e-3),
            "step_size": 250,
            "threads": 8,
        })
        assert correction.dz == -1e-3
        assert config == BatchConfig(step_size=250, threads=8)

    def test_bad_correction_type(self):
        with pytest.raises(TypeError, match="LensCorrection"):
            script_settings({"correction": (0, 0, 1)})

    def test_bad_step_size(self):
        with pytest.raises(InvalidConfig):
            script_settings({"step_size": 0})
