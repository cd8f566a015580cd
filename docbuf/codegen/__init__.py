"""Binding generation from a compiled schema model."""

from .python import PythonBindingGenerator, constant_name, generate_python_bindings, python_identifier

__all__ = ["PythonBindingGenerator", "constant_name", "generate_python_bindings", "python_identifier"]
