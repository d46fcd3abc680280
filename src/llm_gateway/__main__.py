"""Allow ``python -m llm_gateway``."""

from llm_gateway.cli import app

app()
