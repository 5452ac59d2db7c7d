from vidrelay import create_app
from vidrelay.config import Settings

settings = Settings.from_env()
app = create_app(settings)

if __name__ == '__main__':
    app.run(host='0.0.0.0', port=settings.port, debug=True)
