"""Definition compiler.

Import from submodules:
- builder: CompileOptions, CompileResult, compile_definition
- merge: deep_merge
- variables: resolve_variables
- render: render_definition
"""
