from app.htmxspa import create_app

app = create_app()
