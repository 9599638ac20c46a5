# backend/wsgi.py
from teamclock import create_app

app = create_app()
