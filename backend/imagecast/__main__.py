"""Allow ``python -m imagecast``."""
from imagecast.main import run

run()
