import os

from api.app import create_app_from_env

app = create_app_from_env()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
