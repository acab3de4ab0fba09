"""Core orchestration package.

Architectural role:
    Exposes the command layer that sits between API/CLI entrypoints and the
    `fluxlab.image` client.

Composition:
    - `commands`: Parsing of `/flux` and `/fluxultra` chat input.
    - `engine`: Request building, job execution and image download.
"""
