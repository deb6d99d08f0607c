import os
from portal import create_app

# FLASK_APP=manage.py for `flask seed` and the Flask-Migrate `flask db ...` commands
app = create_app()

if __name__ == "__main__":
    app.run(
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "5000")),
        debug=app.config["FLASK_ENV"] == "development",
    )
