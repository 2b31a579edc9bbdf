# wsgi.py
from socialpulse import create_app

application = create_app()
