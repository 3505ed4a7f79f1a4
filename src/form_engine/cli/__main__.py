"""Allows execution via: python -m form_engine.cli"""

from form_engine.cli import app

if __name__ == "__main__":
    app()
