"""``python -m buildtrack.cli``"""

from buildtrack.cli.app import app

app()
