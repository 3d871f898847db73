"""ramlkit -- Parse and fully resolve RAML 1.0 API definitions.

This package reads a RAML document, expands its ``!include`` directives,
loads the libraries it uses, applies resource types and traits with
``<<placeholder>>`` substitution, and hands back a self-contained
:class:`~ramlkit.models.APIDefinition`.

Typical workflow::

    ramlkit inspect resources api.raml   # tabulate the resolved resources
    ramlkit resolve api.raml -o out.json # dump the resolved document

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the entire package.
    shapes: Tagged union for type expressions and inline declarations.
    config: XDG-aware configuration loading.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    parser: The resolution pipeline.
"""

__version__ = "0.1.0"
