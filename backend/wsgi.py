# backend/wsgi.py
from ferreteria import create_app

app = create_app()
