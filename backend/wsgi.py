from billbook import create_app

app = create_app()
