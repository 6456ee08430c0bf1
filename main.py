# Point d'entrée : uvicorn main:app
from studybuddy.main import create_app

app = create_app()
