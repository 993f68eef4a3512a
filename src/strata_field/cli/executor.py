"""Field script execution sandbox.

A field script is a Python file that builds the pressure-field model and
assigns it to ``field``. It may also set ``correction`` (a LensCorrection),
``step_size`` and ``threads``. Scripts run in a namespace with restricted
imports.
"""

import sys
from pathlib import Path
from typing import Any

from strata_field.core.config import BatchConfig
from strata_field.core.points import LensCorrection

ALLOWED_MODULES = frozenset({"strata_field", "numpy", "scipy", "math", "pathlib"})


class RestrictedImportError(ImportError):
    """Raised when a disallowed module import is attempted."""

    pass


def execute_field_script(
    script_path: Path, script_content: str, verbose: bool = False
) -> dict[str, Any]:
    """Execute a field script in a controlled namespace.

    Args:
        script_path: Path to the script file (for __file__ and relative imports)
        script_content: Content of the script to execute
        verbose: If True, print debug information

    Returns:
        Namespace dict containing all variables defined by the script

    Raises:
        RestrictedImportError: If the script imports a disallowed module
        SyntaxError: If the script has syntax errors
        Exception: Any exception raised by the script during execution
    """
    import builtins

    original_import = builtins.__import__

    def restricted_import(name, *args, **kwargs):
        top_level = name.split(".")[0]
        if top_level not in ALLOWED_MODULES:
            raise RestrictedImportError(
                f"Import of '{name}' is not allowed in field scripts. "
                f"Allowed modules: {', '.join(sorted(ALLOWED_MODULES))}"
            )
        return original_import(name, *args, **kwargs)

    # Private builtins copy so the restriction never leaks into the host process
    script_builtins = dict(vars(builtins))
    script_builtins["__import__"] = restricted_import

    namespace = {
        "__name__": "__main__",
        "__file__": str(script_path),
        "__builtins__": script_builtins,
    }

    script_dir = str(script_path.parent)
    sys.path.insert(0, script_dir)
    try:
        if verbose:
            print(f"Executing script: {script_path}")

        exec(compile(script_content, str(script_path), "exec"), namespace)

        if verbose:
            defined_vars = [k for k in namespace if not k.startswith("__")]
            print(f"Script defined variables: {', '.join(defined_vars)}")
    finally:
        if script_dir in sys.path:
            sys.path.remove(script_dir)

    return namespace


def validate_field_object(namespace: dict[str, Any]) -> Any:
    """Return the ``field`` object defined by a script.

    Raises:
        ValueError: If no field is defined or it lacks the required methods
    """
    field = namespace.get("field")

    if field is None:
        raise ValueError(
            "Script must define a 'field' variable. "
            "Example: field = LinearArray(num_elements=32, focus=(0, 0, 0.02))"
        )

    required_methods = ["calc_pressure", "set_num_threads"]
    missing_methods = [m for m in required_methods if not callable(getattr(field, m, None))]

    if missing_methods:
        raise ValueError(
            f"'field' object is missing required methods: {', '.join(missing_methods)}. "
            f"Make sure it's a LinearArray or another pressure-field model."
        )

    return field


def script_settings(namespace: dict[str, Any]) -> tuple[LensCorrection, BatchConfig]:
    """Read the optional run settings a script may define.

    Raises:
        TypeError: If ``correction`` is not a LensCorrection
        InvalidConfig: If ``step_size`` or ``threads`` are invalid
    """
    correction = namespace.get("correction", LensCorrection())
    if not isinstance(correction, LensCorrection):
        raise TypeError(
            f"'correction' must be a LensCorrection, got {type(correction).__name__}"
        )

    defaults = BatchConfig()
    config = BatchConfig(
        step_size=namespace.get("step_size", defaults.step_size),
        threads=namespace.get("threads", defaults.threads),
    )
    return correction, config
