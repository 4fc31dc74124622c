# backend/wsgi.py
from meatbook import create_app

app = create_app()
