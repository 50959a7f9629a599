# envbind/__init__.py
"""
envbind – bind flat key/value configuration onto typed dataclasses.

Start from ``envbind.builder`` (``from_env``, ``from_file``, ``Builder``),
bind with ``Builder.to``, and see ``envbind.exceptions`` for the errors a
binding can raise.

Also available:
    - Fixed-width field types (``Int8``, ``UInt32``, ``Float32``, ...) in ``envbind.convert``
    - ``.env`` and TOML sources via ``from_dotenv`` / ``from_toml``
    - AWS Secrets Manager / Parameter Store resolution in ``envbind.aws``
    - Optional provenance tracking via ``Builder(track_provenance=True)``
"""

__version__ = "0.1.0"
